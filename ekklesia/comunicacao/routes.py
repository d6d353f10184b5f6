from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify, current_app, abort
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_publica_or_404
from ekklesia.membresia.models import Membro
from ekklesia.ministerios.servicos import ministerios_da_igreja
from ekklesia.jornada.models import registrar_evento_jornada
from .models import HistoricoMensagem, GrupoComunicacao, MembroGrupoComunicacao, ModeloMensagem
from .forms import (
    MensagemIndividualForm, MensagemGrupoForm, GrupoComunicacaoForm, ContatoGrupoForm,
    ModeloMensagemForm, RespostaForm,
)
from .integracoes import registrar_e_enviar_whatsapp
from . import servicos
from config import Config

comunicacao_bp = Blueprint('comunicacao', __name__, url_prefix='/comunicacao')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _publicos():
    igreja_id = current_user.igreja_id
    publicos = list(servicos.PUBLICOS)
    publicos += [(f'grupo:{g.id}', f'Grupo: {g.nome}')
                 for g in GrupoComunicacao.query.filter_by(igreja_id=igreja_id).order_by(GrupoComunicacao.nome)]
    publicos += [(f'ministerio:{m.id}', f'Ministério: {m.nome}') for m in ministerios_da_igreja(igreja_id)]
    return publicos


def _modelos():
    return consulta_igreja(ModeloMensagem).order_by(ModeloMensagem.nome).all()


@comunicacao_bp.route('/')
@login_required
@area_required('comunicacao')
def index():
    page = request.args.get('page', 1, type=int)
    pagination = consulta_igreja(HistoricoMensagem).order_by(HistoricoMensagem.created_at.desc()).paginate(
        page=page, per_page=Config.POR_PAGINA, error_out=False
    )
    return render_template(
        'comunicacao/index.html',
        historico=pagination.items, pagination=pagination,
        individual_form=MensagemIndividualForm(),
        grupo_form=MensagemGrupoForm(publicos=_publicos(), modelos=_modelos()),
        modelos=_modelos(),
        ano=ano, versao=versao,
    )


@comunicacao_bp.route('/enviar', methods=['POST'])
@login_required
@area_required('comunicacao')
def enviar():
    form = MensagemIndividualForm()
    if not form.validate_on_submit():
        flash('Informe o telefone e a mensagem.', 'warning')
        return redirect(url_for('comunicacao.index'))
    try:
        historico = registrar_e_enviar_whatsapp(
            current_user.igreja_id, form.nome.data or form.telefone.data, form.telefone.data,
            form.mensagem.data, enviado_por=current_user.nome,
        )
        if historico.status == 'sent':
            flash('Mensagem enviada!', 'success')
        else:
            flash(f'Mensagem registrada, mas o envio falhou: {historico.erro}', 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao enviar mensagem: {e}', 'danger')
    return redirect(request.referrer or url_for('comunicacao.index'))


@comunicacao_bp.route('/enviar-grupo', methods=['POST'])
@login_required
@area_required('comunicacao')
def enviar_grupo():
    form = MensagemGrupoForm(publicos=_publicos(), modelos=_modelos())
    if not form.validate_on_submit():
        flash('Escolha o público e escreva a mensagem.', 'warning')
        return redirect(url_for('comunicacao.index'))
    try:
        contatos = servicos.contatos_do_publico(current_user.igreja_id, form.publico.data)
        enviadas, falhas, campanha_id = servicos.enviar_campanha(
            current_user.igreja_id, contatos, form.mensagem.data, current_user.nome,
        )
        registrar_evento_jornada(
            tipo_acao='MENSAGEM',
            descricao_detalhada=f'Mensagem enviada para {dict(form.publico.choices).get(form.publico.data)}: '
                                f'{enviadas} enviada(s), {falhas} falha(s).',
            usuario_executor=current_user,
            referencia=f'campanha:{campanha_id}',
        )
        categoria = 'success' if falhas == 0 else 'warning'
        flash(f'{enviadas} mensagem(ns) enviada(s) com sucesso. '
              f'{f"{falhas} falharam (verifique os números ou o log de erros)." if falhas else ""}', categoria)
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao enviar mensagens: {e}', 'danger')
    return redirect(url_for('comunicacao.index'))


@comunicacao_bp.route('/conversas')
@login_required
@area_required('comunicacao')
def conversas():
    return render_template('comunicacao/conversas.html',
                           conversas=servicos.conversas(current_user.igreja_id),
                           ano=ano, versao=versao)


@comunicacao_bp.route('/conversas/<telefone>')
@login_required
@area_required('comunicacao')
def conversa(telefone):
    mensagens = servicos.mensagens_da_conversa(current_user.igreja_id, telefone)
    if not mensagens:
        abort(404)
    try:
        servicos.marcar_como_lidas(current_user.igreja_id, telefone)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Erro ao marcar mensagens como lidas: {e}')
    nome = next((m['nome'] for m in mensagens if m['direcao'] == 'recebida' and m['nome']), telefone)
    return render_template('comunicacao/conversa.html', telefone=telefone, nome=nome,
                           mensagens=mensagens, form=RespostaForm(), ano=ano, versao=versao)


@comunicacao_bp.route('/conversas/<telefone>/responder', methods=['POST'])
@login_required
@area_required('comunicacao')
def responder(telefone):
    form = RespostaForm()
    if form.validate_on_submit():
        try:
            historico = registrar_e_enviar_whatsapp(current_user.igreja_id, telefone, telefone,
                                                    form.mensagem.data, enviado_por=current_user.nome)
            if historico.status != 'sent':
                flash(f'O envio falhou: {historico.erro}', 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao enviar mensagem: {e}', 'danger')
    return redirect(url_for('comunicacao.conversa', telefone=telefone))


@comunicacao_bp.route('/conversas/<telefone>/lidas', methods=['POST'])
@login_required
@area_required('comunicacao')
def marcar_lidas(telefone):
    total = servicos.marcar_como_lidas(current_user.igreja_id, telefone)
    return jsonify({'success': True, 'marcadas': total})


@comunicacao_bp.route('/grupos', methods=['GET', 'POST'])
@login_required
@area_required('comunicacao')
def grupos():
    form = GrupoComunicacaoForm()
    if form.validate_on_submit():
        grupo = GrupoComunicacao(igreja_id=current_user.igreja_id, nome=form.nome.data,
                                 lider=form.lider.data or None, imagem_url=form.imagem_url.data or None)
        db.session.add(grupo)
        try:
            db.session.commit()
            flash('Grupo criado com sucesso!', 'success')
            return redirect(url_for('comunicacao.grupo', grupo_id=grupo.id))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar grupo: {e}', 'danger')
    lista = consulta_igreja(GrupoComunicacao).order_by(GrupoComunicacao.nome).all()
    return render_template('comunicacao/grupos.html', grupos=lista, form=form, ano=ano, versao=versao)


@comunicacao_bp.route('/grupos/<int:grupo_id>', methods=['GET', 'POST'])
@login_required
@area_required('comunicacao')
def grupo(grupo_id):
    grupo = obter_da_igreja_or_404(GrupoComunicacao, grupo_id)
    membros = consulta_igreja(Membro).filter(Membro.telefone.isnot(None)).order_by(Membro.nome).all()
    form = ContatoGrupoForm()
    form.membro_id.choices = [(0, 'Contato avulso')] + [(m.id, m.nome) for m in membros]
    if form.validate_on_submit():
        membro = next((m for m in membros if m.id == form.membro_id.data), None)
        nome = membro.nome if membro else (form.nome.data or '').strip()
        telefone = membro.telefone if membro else (form.telefone.data or '').strip()
        if not nome or not telefone:
            flash('Informe o nome e o telefone do contato.', 'warning')
        elif grupo.membros.filter_by(telefone=telefone).first():
            flash('Este telefone já está no grupo.', 'info')
        else:
            db.session.add(MembroGrupoComunicacao(grupo_id=grupo.id, membro_id=membro.id if membro else None,
                                                  nome=nome, telefone=telefone))
            try:
                db.session.commit()
                flash(f'{nome} adicionado(a) ao grupo.', 'success')
                return redirect(url_for('comunicacao.grupo', grupo_id=grupo.id))
            except Exception as e:
                db.session.rollback()
                flash(f'Erro ao adicionar contato: {e}', 'danger')
    contatos = grupo.membros.order_by(MembroGrupoComunicacao.nome).all()
    return render_template('comunicacao/grupo.html', grupo=grupo, contatos=contatos, form=form,
                           ano=ano, versao=versao)


@comunicacao_bp.route('/grupos/<int:grupo_id>/contatos/<int:contato_id>/remover', methods=['POST'])
@login_required
@area_required('comunicacao')
def remover_contato(grupo_id, contato_id):
    grupo = obter_da_igreja_or_404(GrupoComunicacao, grupo_id)
    contato = grupo.membros.filter_by(id=contato_id).first_or_404()
    try:
        db.session.delete(contato)
        db.session.commit()
        flash('Contato removido do grupo.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao remover contato: {e}', 'danger')
    return redirect(url_for('comunicacao.grupo', grupo_id=grupo.id))


@comunicacao_bp.route('/grupos/<int:grupo_id>/excluir', methods=['POST'])
@login_required
@area_required('comunicacao')
def excluir_grupo(grupo_id):
    grupo = obter_da_igreja_or_404(GrupoComunicacao, grupo_id)
    try:
        db.session.delete(grupo)
        db.session.commit()
        flash('Grupo excluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir grupo: {e}', 'danger')
    return redirect(url_for('comunicacao.grupos'))


@comunicacao_bp.route('/modelos', methods=['GET', 'POST'])
@login_required
@area_required('comunicacao')
def modelos():
    form = ModeloMensagemForm()
    if form.validate_on_submit():
        db.session.add(ModeloMensagem(igreja_id=current_user.igreja_id, nome=form.nome.data,
                                      corpo=form.corpo.data, provedor=form.provedor.data))
        try:
            db.session.commit()
            flash('Modelo salvo!', 'success')
            return redirect(url_for('comunicacao.modelos'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao salvar modelo: {e}', 'danger')
    return render_template('comunicacao/modelos.html', modelos=_modelos(), form=form, ano=ano, versao=versao)


@comunicacao_bp.route('/modelos/<int:modelo_id>/excluir', methods=['POST'])
@login_required
@area_required('comunicacao')
def excluir_modelo(modelo_id):
    modelo = obter_da_igreja_or_404(ModeloMensagem, modelo_id)
    try:
        db.session.delete(modelo)
        db.session.commit()
        flash('Modelo excluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir modelo: {e}', 'danger')
    return redirect(url_for('comunicacao.modelos'))


@comunicacao_bp.route('/webhook/<int:igreja_id>', methods=['POST'])
def receber_mensagem(igreja_id):
    igreja = igreja_publica_or_404(igreja_id)
    token = current_app.config.get('WHATSAPP_INBOUND_TOKEN')
    if token and request.headers.get('X-Webhook-Token') != token:
        abort(403)
    dados = (request.get_json(silent=True) or {}).get('data') or {}
    try:
        recebida = servicos.registrar_recebida(igreja.id, dados.get('telefone'), dados.get('mensagem'),
                                               nome=dados.get('nome'), wa_message_id=dados.get('id'))
    except ValueError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Erro ao registrar mensagem recebida: {e}')
        return jsonify({'success': False, 'message': str(e)}), 500
    return jsonify({'success': True, 'duplicada': recebida is None})

from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify, current_app
from flask_login import login_required, current_user
from werkzeug.datastructures import FileStorage
from ekklesia.extensions import db
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_publica_or_404
from ekklesia.jornada.models import JornadaEvento, registrar_evento_jornada
from ekklesia.registros.models import RegistroPendente, PAPEIS_INSCRICAO
from ekklesia.grupos.models import PequenoGrupo
from ekklesia.decorators import area_required
from .models import Membro, Visitante
from .forms import MembroForm, CadastroPublicoForm, VisitanteForm, RecusaInscricaoForm
from . import servicos
from config import Config

membresia_bp = Blueprint('membresia', __name__, url_prefix='/membresia')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP

CAMPOS_MEMBRO = [
    'nome', 'email', 'telefone', 'genero', 'data_nascimento', 'estado_civil', 'papel', 'status',
    'cpf', 'rg', 'endereco', 'cep', 'profissao', 'nome_pai', 'nome_mae', 'igreja_origem', 'batizado', 'duvidas',
]


def _preencher(membro, form):
    for campo in CAMPOS_MEMBRO:
        valor = getattr(form, campo).data
        if isinstance(valor, str):
            valor = valor.strip() or None
        setattr(membro, campo, valor)


def _atualizar_avatar(membro, form):
    """Devolve False quando o arquivo enviado não é uma imagem válida."""
    arquivo = form.avatar.data
    if not (isinstance(arquivo, FileStorage) and arquivo.filename):
        return True
    filename = servicos.salvar_avatar(arquivo)
    if not filename:
        return False
    servicos.remover_avatar(membro.avatar)
    membro.avatar = filename
    return True


@membresia_bp.route('/')
@login_required
@area_required('membresia')
def index():
    page = request.args.get('page', 1, type=int)
    busca = request.args.get('busca', '').strip()
    papel = request.args.get('papel', '')
    status = request.args.get('status', '')

    query = servicos.buscar_membros(consulta_igreja(Membro), busca, papel, status)
    pagination = query.order_by(Membro.nome).paginate(page=page, per_page=Config.POR_PAGINA, error_out=False)
    pendentes = len(servicos.inscricoes_pendentes(current_user.igreja_id))

    return render_template(
        'membresia/lista.html',
        membros=pagination.items,
        pagination=pagination,
        busca=busca,
        papel=papel,
        status=status,
        papeis=Config.PAPEIS_MEMBRO,
        status_membro=Config.STATUS_MEMBRO,
        total_inscricoes=pendentes,
        ano=ano,
        versao=versao,
    )


@membresia_bp.route('/novo', methods=['GET', 'POST'])
@login_required
@area_required('membresia')
def novo_membro():
    form = MembroForm(igreja_id=current_user.igreja_id)

    if form.validate_on_submit():
        membro = Membro(igreja_id=current_user.igreja_id)
        _preencher(membro, form)
        if not _atualizar_avatar(membro, form):
            flash('Tipo de arquivo de imagem não permitido ou inválido!', 'danger')
            return render_template('membresia/cadastro.html', form=form, ano=ano, versao=versao)

        db.session.add(membro)
        try:
            db.session.commit()
            flash(f'{membro.nome} registrado com sucesso!', 'success')
            registrar_evento_jornada(
                tipo_acao='MEMBRO_CADASTRADO',
                descricao_detalhada=f'{membro.nome} cadastrado(a) como {membro.papel}.',
                usuario_executor=current_user,
                membros=[membro]
            )
            return redirect(url_for('membresia.perfil', id=membro.id))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao registrar membro: {e}', 'danger')

    elif request.method == 'POST':
        current_app.logger.warning(f'Erros de validação do cadastro de membro: {form.errors}')
        flash('Por favor, verifique os campos em vermelho e corrija os erros de validação.', 'danger')

    return render_template('membresia/cadastro.html', form=form, ano=ano, versao=versao)


@membresia_bp.route('/<int:id>/editar', methods=['GET', 'POST'])
@login_required
@area_required('membresia')
def editar_membro(id):
    membro = obter_da_igreja_or_404(Membro, id)
    form = MembroForm(obj=membro, igreja_id=current_user.igreja_id, membro=membro)

    old_status = membro.status
    old_papel = membro.papel

    if form.validate_on_submit():
        _preencher(membro, form)
        if not _atualizar_avatar(membro, form):
            flash('Tipo de arquivo de imagem não permitido ou inválido!', 'danger')
            return render_template('membresia/cadastro.html', form=form, editar=True, membro=membro, ano=ano, versao=versao)

        try:
            db.session.commit()
            flash(f'Registro de {membro.nome} atualizado com sucesso!', 'success')

            mudancas = []
            if old_status != membro.status:
                mudancas.append(f'Status: {old_status} -> {membro.status}')
            if old_papel != membro.papel:
                mudancas.append(f'Papel: {old_papel} -> {membro.papel}')
            descricao = 'Dados atualizados.'
            if mudancas:
                descricao += ' ' + '; '.join(mudancas)

            registrar_evento_jornada(
                tipo_acao='MEMBRO_ATUALIZADO',
                descricao_detalhada=descricao,
                usuario_executor=current_user,
                membros=[membro]
            )
            return redirect(url_for('membresia.perfil', id=membro.id))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar membro: {e}', 'danger')

    return render_template('membresia/cadastro.html', form=form, editar=True, membro=membro, ano=ano, versao=versao)


@membresia_bp.route('/<int:id>/excluir', methods=['POST'])
@login_required
@area_required('membresia')
def excluir_membro(id):
    membro = obter_da_igreja_or_404(Membro, id)
    nome = membro.nome
    avatar = membro.avatar

    try:
        if membro.user:
            membro.user.membro_id = None
        for grupo in consulta_igreja(PequenoGrupo).all():
            if grupo.lider_id == membro.id:
                grupo.lider_id = None
            grupo.remover_membro(membro.id)
        for evento in membro.jornada_eventos_membro.all():
            evento.membros_afetados.remove(membro)
        db.session.delete(membro)
        db.session.commit()
        servicos.remover_avatar(avatar)
        flash(f'{nome} foi excluído(a).', 'success')
        registrar_evento_jornada(
            tipo_acao='MEMBRO_EXCLUIDO',
            descricao_detalhada=f'{nome} foi excluído(a) do cadastro.',
            usuario_executor=current_user,
            referencia=f'membro:{id}',
        )
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir membro: {e}', 'danger')
    return redirect(url_for('membresia.index'))


@membresia_bp.route('/<int:id>/perfil')
@login_required
@area_required('membresia')
def perfil(id):
    membro = obter_da_igreja_or_404(Membro, id)
    jornada_eventos = membro.jornada_eventos_membro.order_by(JornadaEvento.data_evento.desc()).all()
    grupos = [g for g in consulta_igreja(PequenoGrupo).all() if g.tem_membro(membro.id) or g.lider_id == membro.id]
    return render_template('membresia/perfil.html',
                           membro=membro,
                           jornada_eventos=jornada_eventos,
                           grupos=grupos,
                           jornada_config=Config.JORNADA,
                           ano=ano,
                           versao=versao)


@membresia_bp.route('/buscar')
@login_required
def buscar():
    termo = request.args.get('term', '').strip()
    if not current_user.igreja_id or not termo:
        return jsonify(items=[])
    membros = servicos.buscar_membros(consulta_igreja(Membro), busca=termo) \
        .order_by(Membro.nome).limit(20).all()
    return jsonify(items=[
        {'id': m.id, 'text': m.nome, 'telefone': m.telefone, 'papel': m.papel,
         'perfil_url': url_for('membresia.perfil', id=m.id)}
        for m in membros
    ])


@membresia_bp.route('/visitantes')
@login_required
@area_required('membresia')
def visitantes():
    page = request.args.get('page', 1, type=int)
    busca = request.args.get('busca', '').strip()
    query = consulta_igreja(Visitante)
    if busca:
        query = query.filter(servicos.filtro_nome(Visitante.nome, busca))
    pagination = query.order_by(Visitante.created_at.desc()).paginate(
        page=page, per_page=Config.POR_PAGINA, error_out=False)
    return render_template('membresia/visitantes.html', visitantes=pagination.items, pagination=pagination,
                           busca=busca, ano=ano, versao=versao)


@membresia_bp.route('/inscricoes')
@login_required
@area_required('membresia')
def inscricoes():
    return render_template('membresia/inscricoes.html',
                           inscricoes=servicos.inscricoes_pendentes(current_user.igreja_id),
                           form_recusa=RecusaInscricaoForm(),
                           ano=ano, versao=versao)


def _inscricao_or_404(inscricao_id):
    return consulta_igreja(RegistroPendente).filter(
        RegistroPendente.id == inscricao_id, RegistroPendente.papel.in_(PAPEIS_INSCRICAO),
    ).first_or_404()


@membresia_bp.route('/inscricoes/<int:inscricao_id>/aprovar', methods=['POST'])
@login_required
@area_required('membresia')
def aprovar_inscricao(inscricao_id):
    registro = _inscricao_or_404(inscricao_id)
    try:
        membro = servicos.aprovar_inscricao(registro, current_user)
        flash(f'Inscrição de {membro.nome} aprovada!', 'success')
        registrar_evento_jornada(
            tipo_acao='INSCRICAO_APROVADA',
            descricao_detalhada=f'Inscrição como {registro.papel} aprovada.',
            usuario_executor=current_user,
            membros=[membro],
            referencia=f'registro:{registro.id}',
        )
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao aprovar inscrição: {e}', 'danger')
    return redirect(url_for('membresia.inscricoes'))


@membresia_bp.route('/inscricoes/<int:inscricao_id>/recusar', methods=['POST'])
@login_required
@area_required('membresia')
def recusar_inscricao(inscricao_id):
    registro = _inscricao_or_404(inscricao_id)
    form = RecusaInscricaoForm()
    try:
        servicos.recusar_inscricao(registro, current_user, form.motivo.data)
        flash(f'Inscrição de {registro.nome} recusada.', 'info')
        registrar_evento_jornada(
            tipo_acao='INSCRICAO_RECUSADA',
            descricao_detalhada=f'Inscrição de {registro.nome} como {registro.papel} recusada.',
            usuario_executor=current_user,
            referencia=f'registro:{registro.id}',
        )
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao recusar inscrição: {e}', 'danger')
    return redirect(url_for('membresia.inscricoes'))


@membresia_bp.route('/publico/<int:igreja_id>/cadastro', methods=['GET', 'POST'])
def cadastro_publico(igreja_id):
    igreja = igreja_publica_or_404(igreja_id)
    form = CadastroPublicoForm()
    if form.validate_on_submit():
        try:
            servicos.criar_inscricao(igreja.id, form.nome.data.strip(), form.email.data.strip().lower(),
                                     form.telefone.data, 'Membro', form.dados())
            return render_template('publico/obrigado.html', igreja=igreja,
                                   mensagem='Cadastro recebido! A secretaria da igreja vai analisar seus dados.',
                                   ano=ano, versao=versao)
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao enviar cadastro: {e}', 'danger')
    elif request.method == 'POST':
        flash('Por favor, verifique os campos em vermelho e corrija os erros.', 'danger')
    return render_template('membresia/publico_cadastro.html', form=form, igreja=igreja, ano=ano, versao=versao)


@membresia_bp.route('/publico/<int:igreja_id>/visitante', methods=['GET', 'POST'])
def visitante_publico(igreja_id):
    igreja = igreja_publica_or_404(igreja_id)
    form = VisitanteForm()
    if form.validate_on_submit():
        visitante = Visitante(igreja_id=igreja.id, nome=form.nome.data.strip(), email=form.email.data or None,
                              telefone=form.telefone.data or None, como_conheceu=form.como_conheceu.data or None)
        db.session.add(visitante)
        try:
            db.session.commit()
            return render_template('publico/obrigado.html', igreja=igreja,
                                   mensagem=f'Seja bem-vindo(a), {visitante.nome.split(" ")[0]}! Que bom ter você conosco.',
                                   ano=ano, versao=versao)
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao registrar visita: {e}', 'danger')
    return render_template('membresia/publico_visitante.html', form=form, igreja=igreja, ano=ano, versao=versao)

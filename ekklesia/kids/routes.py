from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_publica_or_404
from ekklesia.jornada.models import registrar_evento_jornada
from .models import Crianca
from .forms import CriancaForm, TelefoneResponsavelForm, MensagemResponsavelForm
from . import servicos
from config import Config

kids_bp = Blueprint('kids', __name__, url_prefix='/kids')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


@kids_bp.route('/')
@login_required
@area_required('kids')
def index():
    criancas = consulta_igreja(Crianca).order_by(Crianca.nome).all()
    return render_template(
        'kids/index.html',
        criancas=criancas,
        presentes=servicos.presentes(current_user.igreja_id),
        checkins=servicos.checkins_do_dia(current_user.igreja_id),
        form=CriancaForm(), mensagem_form=MensagemResponsavelForm(),
        ano=ano, versao=versao,
    )


@kids_bp.route('/criancas', methods=['POST'])
@login_required
@area_required('kids')
def cadastrar():
    form = CriancaForm()
    if not form.validate_on_submit():
        flash('Preencha o nome, a data de nascimento e o responsável.', 'warning')
        return redirect(url_for('kids.index'))
    try:
        crianca = servicos.cadastrar_crianca(current_user.igreja_id, form.nome.data, form.data_nascimento.data,
                                             form.responsaveis(), form.alergias.data, form.observacoes.data)
        registrar_evento_jornada(
            tipo_acao='KIDS',
            descricao_detalhada=f'Criança {crianca.nome} cadastrada no ministério infantil.',
            usuario_executor=current_user,
            referencia=f'crianca:{crianca.id}',
        )
        flash('Criança cadastrada com sucesso!', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao cadastrar criança: {e}', 'danger')
    return redirect(url_for('kids.index'))


@kids_bp.route('/criancas/<int:crianca_id>/checkin', methods=['POST'])
@login_required
@area_required('kids')
def checkin(crianca_id):
    crianca = obter_da_igreja_or_404(Crianca, crianca_id)
    try:
        servicos.fazer_checkin(crianca, current_user.nome)
        flash(f'Check-in de {crianca.nome} realizado.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro no check-in: {e}', 'danger')
    return redirect(url_for('kids.index'))


@kids_bp.route('/criancas/<int:crianca_id>/checkout', methods=['POST'])
@login_required
@area_required('kids')
def checkout(crianca_id):
    crianca = obter_da_igreja_or_404(Crianca, crianca_id)
    try:
        servicos.fazer_checkout(crianca, current_user.nome)
        flash(f'Checkout de {crianca.nome} realizado.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro no checkout: {e}', 'danger')
    return redirect(url_for('kids.index'))


@kids_bp.route('/criancas/<int:crianca_id>/excluir', methods=['POST'])
@login_required
@area_required('kids')
def excluir(crianca_id):
    crianca = obter_da_igreja_or_404(Crianca, crianca_id)
    try:
        db.session.delete(crianca)
        db.session.commit()
        flash('Cadastro removido.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao remover cadastro: {e}', 'danger')
    return redirect(url_for('kids.index'))


@kids_bp.route('/criancas/<int:crianca_id>/avisar', methods=['POST'])
@login_required
@area_required('kids')
def avisar_responsavel(crianca_id):
    crianca = obter_da_igreja_or_404(Crianca, crianca_id)
    form = MensagemResponsavelForm()
    if not form.validate_on_submit():
        flash('Escreva a mensagem.', 'warning')
        return redirect(url_for('kids.index'))
    try:
        historico = servicos.avisar_responsavel(crianca, form.mensagem.data, current_user)
        if historico.status == 'sent':
            flash(f'Uma mensagem foi enviada para {crianca.responsavel_principal["name"]}.', 'success')
        else:
            flash(f'Não foi possível enviar a mensagem: {historico.erro}', 'warning')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao enviar mensagem: {e}', 'danger')
    return redirect(url_for('kids.index'))


def _fluxo_publico(igreja_id, acao):
    """Check-in e checkout feitos pelo próprio responsável.

    Primeiro passo identifica o responsável pelo telefone; o segundo recebe as
    crianças selecionadas.
    """
    igreja = igreja_publica_or_404(igreja_id)
    form = TelefoneResponsavelForm()
    criancas = None

    if request.method == 'POST' and 'crianca_ids' in request.form:
        telefone = request.form.get('telefone', '')
        selecionadas = request.form.getlist('crianca_ids', type=int)
        if not selecionadas:
            flash('Por favor, selecione pelo menos uma criança.', 'warning')
        else:
            try:
                permitidas = {c.id: c for c in servicos.criancas_do_responsavel(igreja.id, telefone)}
                feitas = []
                for crianca_id in selecionadas:
                    crianca = permitidas.get(crianca_id)
                    if crianca is None:
                        continue
                    if acao == 'checkin':
                        servicos.fazer_checkin(crianca, f'Responsável ({telefone})')
                    else:
                        servicos.fazer_checkout(crianca, f'Responsável ({telefone})')
                    feitas.append(crianca.nome)
                mensagem = 'Check-in confirmado' if acao == 'checkin' else 'Retirada concluída'
                return render_template('publico/obrigado.html', igreja=igreja,
                                       mensagem=f'{mensagem}: {", ".join(feitas)}.', ano=ano, versao=versao)
            except ValueError as e:
                flash(str(e), 'warning')
            except Exception as e:
                db.session.rollback()
                flash(f'Erro ao registrar: {e}', 'danger')
    elif form.validate_on_submit():
        try:
            criancas = servicos.criancas_do_responsavel(igreja.id, form.telefone.data)
            if acao == 'checkout':
                criancas = [c for c in criancas if c.checkin_aberto is not None]
            if not criancas:
                flash('Nenhuma criança encontrada para este telefone.', 'warning')
        except ValueError as e:
            flash(str(e), 'warning')

    return render_template('kids/publico.html', igreja=igreja, form=form, criancas=criancas,
                           acao=acao, ano=ano, versao=versao)


@kids_bp.route('/publico/<int:igreja_id>/checkin', methods=['GET', 'POST'])
def checkin_publico(igreja_id):
    return _fluxo_publico(igreja_id, 'checkin')


@kids_bp.route('/publico/<int:igreja_id>/checkout', methods=['GET', 'POST'])
def checkout_publico(igreja_id):
    return _fluxo_publico(igreja_id, 'checkout')

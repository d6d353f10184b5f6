import click
import os
from flask.cli import with_appcontext
from flask import current_app
from ekklesia.extensions import db
from ekklesia.igrejas.models import Igreja
from ekklesia.igrejas.servicos import criar_igreja_com_dono
from ekklesia.membresia.models import Membro
from ekklesia.membresia.servicos import otimizar_imagem
from ekklesia.financeiro.servicos import garantir_categorias_padrao


@click.command("init-db")
@with_appcontext
def init_db_command():
    db.create_all()
    click.echo("✅ Tabelas criadas.")


@click.command("criar-admin")
@click.option('--igreja', 'nome_igreja', prompt='Nome da igreja')
@click.option('--nome', prompt='Nome do administrador')
@click.option('--email', prompt='Email')
@click.option('--senha', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def criar_admin(nome_igreja, nome, email, senha):
    try:
        igreja, usuario = criar_igreja_com_dono(nome_igreja, nome, email, senha)
        garantir_categorias_padrao(igreja.id)
        click.echo(f"✅ Igreja '{igreja.nome}' criada com o administrador {usuario.email}.")
    except ValueError as e:
        db.session.rollback()
        click.echo(f"⚠️  {e}")


@click.command('seed-categorias')
@with_appcontext
def seed_categorias():
    """Cria as categorias financeiras padrão que ainda faltam em cada igreja."""
    total = 0
    for igreja in Igreja.query.order_by(Igreja.id).all():
        novas = garantir_categorias_padrao(igreja.id)
        if novas:
            click.echo(f"   {igreja.nome}: {novas} categoria(s) criada(s)")
        total += novas
    click.echo(f"✅ {total} categoria(s) adicionada(s).")


@click.command('optimize-images')
@with_appcontext
def optimize_images_command():
    click.echo('Iniciando otimização das fotos de perfil existentes...')

    upload_folder = current_app.config['UPLOAD_FOLDER']
    if not os.path.exists(upload_folder):
        click.echo('Pasta de uploads não encontrada. Abortando.')
        return

    membros = Membro.query.filter(Membro.avatar.isnot(None), Membro.avatar != 'default.jpg').all()
    otimizados = 0
    com_erro = 0

    for membro in membros:
        filepath = os.path.join(upload_folder, membro.avatar)
        if not os.path.exists(filepath):
            click.echo(f"Aviso: Arquivo '{membro.avatar}' não encontrado para o membro {membro.nome}.")
            continue
        try:
            temporario = os.path.join(upload_folder, 'temp_' + membro.avatar)
            otimizar_imagem(filepath, temporario)
            os.replace(temporario, filepath)
            otimizados += 1
            click.echo(f"Otimizado: {membro.nome} ({otimizados}/{len(membros)})")
        except Exception as e:
            com_erro += 1
            click.echo(f"Erro ao otimizar foto de {membro.nome}: {e}", err=True)

    click.echo('---')
    click.echo(f'Otimização concluída. {otimizados} fotos otimizadas.')
    if com_erro > 0:
        click.echo(f'{com_erro} fotos apresentaram erros. Verifique os logs.')

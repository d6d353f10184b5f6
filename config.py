import os
from datetime import datetime

basedir = os.path.abspath(os.path.dirname(__file__))

JORNADA_MEMBRO_CADASTRADO = {'class': 'bg-success', 'icon': 'bi-person-add', 'label': 'Membro Cadastrado', 'categoria': 'Membresia'}
JORNADA_MEMBRO_ATUALIZADO = {'class': 'bg-info', 'icon': 'bi-pencil', 'label': 'Membro Atualizado', 'categoria': 'Membresia'}
JORNADA_MEMBRO_EXCLUIDO = {'class': 'bg-danger', 'icon': 'bi-person-x', 'label': 'Membro Excluído', 'categoria': 'Membresia'}
JORNADA_INSCRICAO_APROVADA = {'class': 'bg-success', 'icon': 'bi-check-circle', 'label': 'Inscrição Aprovada', 'categoria': 'Cadastros'}
JORNADA_INSCRICAO_RECUSADA = {'class': 'bg-danger', 'icon': 'bi-x-circle', 'label': 'Inscrição Recusada', 'categoria': 'Cadastros'}
JORNADA_AGENDAMENTO = {'class': 'bg-primary', 'icon': 'bi-calendar-check', 'label': 'Atendimento Atualizado', 'categoria': 'Aconselhamento'}
JORNADA_MINISTERIO = {'class': 'bg-primary', 'icon': 'bi-briefcase', 'label': 'Ministério Atualizado', 'categoria': 'Ministérios'}
JORNADA_VOLUNTARIO = {'class': 'bg-info', 'icon': 'bi-person-badge', 'label': 'Voluntário Atualizado', 'categoria': 'Voluntariado'}
JORNADA_DISCIPULADO = {'class': 'bg-success', 'icon': 'bi-people', 'label': 'Discipulado', 'categoria': 'Discipulado'}
JORNADA_ACOLHIMENTO = {'class': 'bg-warning', 'icon': 'bi-heart', 'label': 'Acolhimento', 'categoria': 'Acolhimento'}
JORNADA_GRUPO = {'class': 'bg-success', 'icon': 'bi-people-fill', 'label': 'Pequeno Grupo', 'categoria': 'Grupos'}
JORNADA_TRANSACAO = {'class': 'bg-primary', 'icon': 'bi-currency-dollar', 'label': 'Lançamento Financeiro', 'categoria': 'Financeiro'}
JORNADA_TRANSACAO_EXCLUIDA = {'class': 'bg-danger', 'icon': 'bi-trash', 'label': 'Lançamento Excluído', 'categoria': 'Financeiro'}
JORNADA_KIDS = {'class': 'bg-info', 'icon': 'bi-balloon', 'label': 'Kids', 'categoria': 'Kids'}
JORNADA_MENSAGEM = {'class': 'bg-secondary', 'icon': 'bi-whatsapp', 'label': 'Mensagem Enviada', 'categoria': 'Comunicação'}


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'chave-secreta-segura'

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'data', 'ekklesia.db')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    WHATSAPP_WEBHOOK_URL = os.environ.get('WHATSAPP_WEBHOOK_URL')
    WHATSAPP_INBOUND_TOKEN = os.environ.get('WHATSAPP_INBOUND_TOKEN')
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    RESEND_API_URL = 'https://api.resend.com/emails'
    EMAIL_REMETENTE = os.environ.get('EMAIL_REMETENTE') or 'Ekklesia Hub <nao-responda@ekklesiahub.com.br>'
    TIMEOUT_INTEGRACOES = 15

    TIMEZONE = 'America/Sao_Paulo'
    VERSAO_APP = '1.4.0'
    ANO_ATUAL = datetime.now().year

    POR_PAGINA = 30

    PAPEIS_USUARIO = [
        'Administrador', 'Pastor', 'Coordenador', 'Consolidador',
        'Conselheiro', 'Voluntário', 'Membro',
    ]

    PAPEIS_ACESSO_TOTAL = ['Administrador', 'Pastor', 'Coordenador']

    AREAS_POR_PAPEL = {
        'Consolidador': ['acolhimento', 'grupos', 'discipulado'],
        'Conselheiro': ['aconselhamento'],
        'Voluntário': ['painel'],
    }

    PAPEIS_MEMBRO = [
        'Pastor', 'Líder', 'Membro', 'Visitante', 'Coordenador', 'Voluntário',
        'Conselheiro', 'Líder de Pequeno Grupo', 'Consolidador',
    ]

    STATUS_MEMBRO = ['Ativo', 'Inativo', 'Pendente', 'Aguardando regularização', 'Em Validação']

    GENEROS = ['Masculino', 'Feminino', 'Outro']

    ESTADOS_CIVIS = ['Solteiro(a)', 'Casado(a)', 'Divorciado(a)', 'Viúvo(a)']

    DIAS_SEMANA = ['Domingo', 'Segunda', 'Terça', 'Quarta', 'Quinta', 'Sexta', 'Sábado']

    PERIODOS = ['Manhã', 'Tarde', 'Noite']

    MESES_AGENDAMENTO_PUBLICO = 2

    TOPICOS_ACONSELHAMENTO = [
        {'id': 'casamento', 'label': 'Casamento (brigas, traições, discussões...)'},
        {'id': 'espiritual', 'label': 'Espirituais (Não consigo ler, orar, jejuar...)'},
        {'id': 'emocional', 'label': 'Emocionais (Amoroso, depressão, perdão...)'},
        {'id': 'filhos', 'label': 'Filhos (Educação, Correção...)'},
        {'id': 'financeiro', 'label': 'Financeiro (Gestão, Crise Financeira...)'},
        {'id': 'relacionamento', 'label': 'Relacionamento Familiar ou amigável'},
        {'id': 'saude', 'label': 'Saúde (Problemas físicos, doenças...)'},
        {'id': 'sexual', 'label': 'Sexual (masturbação, sexo antes do casamento...)'},
        {'id': 'vicios', 'label': 'Vícios (Bebidas, tabaco, drogas, pornografia...)'},
    ]

    STATUS_AGENDAMENTO = ['Pendente', 'Marcado', 'Em Aconselhamento', 'Concluído', 'Cancelado', 'Na Fila', 'Não houve retorno']
    STATUS_AGENDAMENTO_ATIVOS = ['Pendente', 'Marcado', 'Em Aconselhamento']

    STATUS_VOLUNTARIO = [
        'Pendente', 'Em Treinamento', 'Em Validação', 'Aprovado', 'Aguardando regularização',
        'Aguardando Documentos', 'Com Retorno', 'Alocado', 'Aguardando Aprovação do Líder',
    ]

    STATUS_ACOLHIMENTO = ['Pendente', 'Em acolhimento', 'Direcionado', 'Sem resposta', 'Número errado', 'Concluído']

    INTERESSES_ACOLHIMENTO = [
        {'key': 'baptism', 'label': 'Desejo me batizar'},
        {'key': 'membership', 'label': 'Desejo me tornar membro'},
        {'key': 'volunteer', 'label': 'Desejo me tornar um voluntário'},
        {'key': 'growth_group', 'label': 'Desejo fazer parte de um grupo de crescimento (GC)'},
        {'key': 'counseling', 'label': 'Desejo Aconselhamento pastoral'},
        {'key': 'prayer_request', 'label': 'Tenho um pedido de oração'},
        {'key': 'know_more_about_jesus', 'label': 'Desejo conhecer mais a Jesus'},
    ]

    TIPOS_TRANSACAO = ['Entrada', 'Saída']
    STATUS_TRANSACAO = ['Pendente', 'Conciliado']

    CATEGORIAS_PADRAO = [
        ('Dízimos', 'Entrada'),
        ('Ofertas', 'Entrada'),
        ('Missões', 'Entrada'),
        ('Aluguel', 'Saída'),
        ('Energia e Água', 'Saída'),
        ('Manutenção', 'Saída'),
        ('Ação Social', 'Saída'),
    ]

    TIPOS_CULTO = ['Culto de Domingo (Manhã)', 'Culto de Domingo (Noite)', 'Culto de Quarta', 'Evento Especial']

    FAIXAS_ETARIAS = [(0, 17, 'Até 17'), (18, 25, '18-25'), (26, 35, '26-35'), (36, 50, '36-50'), (51, 200, '51+')]

    CORES_STATUS_AGENDAMENTO = {
        'Pendente': '#ffc107',
        'Marcado': '#0d6efd',
        'Em Aconselhamento': '#0dcaf0',
        'Concluído': '#198754',
        'Cancelado': '#dc3545',
        'Na Fila': '#6c757d',
        'Não houve retorno': '#212529',
    }

    JORNADA = {
        'MEMBRO_CADASTRADO': JORNADA_MEMBRO_CADASTRADO,
        'MEMBRO_ATUALIZADO': JORNADA_MEMBRO_ATUALIZADO,
        'MEMBRO_EXCLUIDO': JORNADA_MEMBRO_EXCLUIDO,
        'INSCRICAO_APROVADA': JORNADA_INSCRICAO_APROVADA,
        'INSCRICAO_RECUSADA': JORNADA_INSCRICAO_RECUSADA,
        'AGENDAMENTO': JORNADA_AGENDAMENTO,
        'MINISTERIO': JORNADA_MINISTERIO,
        'VOLUNTARIO': JORNADA_VOLUNTARIO,
        'DISCIPULADO': JORNADA_DISCIPULADO,
        'ACOLHIMENTO': JORNADA_ACOLHIMENTO,
        'GRUPO': JORNADA_GRUPO,
        'TRANSACAO': JORNADA_TRANSACAO,
        'TRANSACAO_EXCLUIDA': JORNADA_TRANSACAO_EXCLUIDA,
        'KIDS': JORNADA_KIDS,
        'MENSAGEM': JORNADA_MENSAGEM,
    }


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    WHATSAPP_WEBHOOK_URL = 'https://webhook.teste/enviar-mensagem'
    RESEND_API_KEY = 'chave-teste'

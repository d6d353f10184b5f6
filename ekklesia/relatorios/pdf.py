"""Relatórios em PDF (reportlab).

As funções recebem os dados já consultados e devolvem os bytes do PDF.
"""
import io
from datetime import datetime

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.enums import TA_CENTER

from ekklesia.filters import format_currency

ESTILO_CABECALHO_TABELA = [
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
    ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 8),
    ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#bdc3c7')),
    ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f8f9fa')]),
]


def criar_estilos():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='TituloRelatorio', parent=styles['Heading1'], fontSize=18, spaceAfter=20,
        alignment=TA_CENTER, textColor=colors.HexColor('#2c3e50'),
    ))
    styles.add(ParagraphStyle(
        name='Subtitulo', parent=styles['Heading2'], fontSize=13, spaceBefore=16, spaceAfter=8,
        textColor=colors.HexColor('#34495e'),
    ))
    styles.add(ParagraphStyle(
        name='Cabecalho', parent=styles['Normal'], fontSize=9, alignment=TA_CENTER,
        textColor=colors.HexColor('#7f8c8d'),
    ))
    return styles


def _tabela(linhas, larguras, cor_cabecalho):
    tabela = Table(linhas, colWidths=larguras, repeatRows=1)
    tabela.setStyle(TableStyle([('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(cor_cabecalho))] + ESTILO_CABECALHO_TABELA))
    return tabela


def _resumo(linhas):
    tabela = Table(linhas, colWidths=[10 * cm, 6 * cm])
    tabela.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#ecf0f1')),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('GRID', (0, 0), (-1, -1), 1, colors.white),
    ]))
    return tabela


def _documento(nome_igreja, titulo, corpo):
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=2 * cm, bottomMargin=2 * cm, title=titulo)
    styles = criar_estilos()
    elementos = [
        Paragraph(nome_igreja or 'Igreja', styles['TituloRelatorio']),
        Paragraph(f'{titulo} - {datetime.now().strftime("%d/%m/%Y")}', styles['Cabecalho']),
        Spacer(1, 16),
    ]
    elementos += corpo(styles)
    elementos.append(Spacer(1, 24))
    elementos.append(Paragraph(
        f'Documento gerado em {datetime.now().strftime("%d/%m/%Y às %H:%M")} | Ekklesia Hub', styles['Cabecalho']))
    doc.build(elementos)
    return buffer.getvalue()


def gerar_pdf_membros(nome_igreja, membros):
    def corpo(styles):
        por_status = {}
        for m in membros:
            por_status[m.status] = por_status.get(m.status, 0) + 1
        elementos = [Paragraph('Resumo', styles['Subtitulo']),
                     _resumo([['Total de Membros', str(len(membros))]] +
                             [[status, str(qtd)] for status, qtd in sorted(por_status.items())])]
        elementos.append(Paragraph('Lista de Membros', styles['Subtitulo']))
        linhas = [['Nome', 'Telefone', 'E-mail', 'Papel', 'Status']]
        for m in membros:
            linhas.append([(m.nome or '')[:35], m.telefone or '', (m.email or '')[:30], m.papel or '', m.status or ''])
        elementos.append(_tabela(linhas, [5 * cm, 3 * cm, 4.5 * cm, 2.5 * cm, 2.5 * cm], '#3498db'))
        return elementos

    return _documento(nome_igreja, 'Relatório de Membros', corpo)


def gerar_pdf_financeiro(nome_igreja, resumo, periodo):
    def corpo(styles):
        elementos = [
            Paragraph(f'Período: {periodo}', styles['Cabecalho']),
            Paragraph('Resumo Financeiro', styles['Subtitulo']),
            _resumo([
                ['Total de Entradas', format_currency(resumo['entradas'])],
                ['Total de Saídas', format_currency(resumo['saidas'])],
                ['Saldo do Período', format_currency(resumo['saldo'])],
            ]),
        ]
        for tipo, titulo, cor in (('Entrada', 'Entradas por Categoria', '#27ae60'),
                                  ('Saída', 'Saídas por Categoria', '#c0392b')):
            categorias = resumo['por_categoria'].get(tipo)
            if not categorias:
                continue
            elementos.append(Paragraph(titulo, styles['Subtitulo']))
            linhas = [['Categoria', 'Valor']] + [[c, format_currency(v)] for c, v in categorias.items()]
            elementos.append(_tabela(linhas, [10 * cm, 6 * cm], cor))
        if resumo['labels_meses']:
            elementos.append(Paragraph('Movimento Mensal', styles['Subtitulo']))
            linhas = [['Mês', 'Entradas', 'Saídas']]
            for label, e, s in zip(resumo['labels_meses'], resumo['serie_entradas'], resumo['serie_saidas']):
                linhas.append([label, format_currency(e), format_currency(s)])
            elementos.append(_tabela(linhas, [6 * cm, 5 * cm, 5 * cm], '#34495e'))
        return elementos

    return _documento(nome_igreja, 'Relatório Financeiro', corpo)


def gerar_pdf_aconselhamento(nome_igreja, estatisticas, mes=None):
    def corpo(styles):
        r = estatisticas['resumo']
        elementos = []
        if mes:
            elementos.append(Paragraph(f'Mês de referência: {mes}', styles['Cabecalho']))
        elementos += [
            Paragraph('Resumo dos Atendimentos', styles['Subtitulo']),
            _resumo([
                ['Total', str(r['total'])],
                ['Na Fila', str(r['na_fila'])],
                ['Pendentes', str(r['pendentes'])],
                ['Marcados', str(r['marcados'])],
                ['Concluídos', str(r['concluidos'])],
                ['Cancelados', str(r['cancelados'])],
                ['Sem retorno', str(r['sem_retorno'])],
            ]),
        ]
        for chave, titulo in (('por_conselheiro', 'Por Conselheiro'), ('por_topico', 'Por Assunto'),
                              ('por_genero', 'Por Gênero'), ('por_faixa_etaria', 'Por Faixa Etária')):
            if not estatisticas[chave]:
                continue
            elementos.append(Paragraph(titulo, styles['Subtitulo']))
            linhas = [['', 'Atendimentos']] + [[str(k)[:60], str(v)] for k, v in estatisticas[chave].items()]
            elementos.append(_tabela(linhas, [12 * cm, 4 * cm], '#8e44ad'))
        return elementos

    return _documento(nome_igreja, 'Relatório de Aconselhamento', corpo)

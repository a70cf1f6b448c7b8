# pizzaflow/core/testes_regras.py
"""
Testes das regras puras do Core: precificação, validação de cupom,
máquina de estados, agregações do dashboard e exportação CSV.
Nenhum teste aqui precisa de banco de dados.
"""
import csv
import io
import itertools
import unittest
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from pizzaflow.core.entities import (
    Cupom, Desconto, ItemPedido, Pedido, StatusPedido, StatusPagamento, TipoDesconto, MotivoCupomInvalido,
)
from pizzaflow.core.exceptions import DadosInvalidosError, TransicaoInvalidaError, StatusInvalidoError
from pizzaflow.core.precificacao import (
    calcular_subtotal, calcular_totais, calcular_valor_desconto, congelar_totais, motivo_invalidade, quantizar,
)
from pizzaflow.core.ciclo_vida import EventoPedido, TRANSICOES, aplicar_transicao, evento_para, proximo_status
from pizzaflow.core.analytics import calcular_analise, dias_do_periodo, ultimos_dias
from pizzaflow.core.exportacao import CABECALHO_CSV, exportar_pedidos_csv

FUSO = ZoneInfo("America/Sao_Paulo")
AGORA = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)


def _itens_exemplo():
    return [
        ItemPedido(item_cardapio_id="pizza-1", nome="Pizza Margherita", preco=Decimal("29.90"), quantidade=2),
        ItemPedido(item_cardapio_id="bebida-1", nome="Refrigerante", preco=Decimal("5.00"), quantidade=1),
    ]


def _pedido(**kwargs):
    dados = dict(
        nome_cliente="Maria",
        endereco_cliente="Rua A, 10",
        valor_total=Decimal("50.00"),
        itens=_itens_exemplo(),
        criado_em=AGORA - timedelta(hours=1),
        atualizado_em=AGORA - timedelta(hours=1),
    )
    dados.update(kwargs)
    return Pedido(**dados)


# ====================================================================
# MOTOR DE PRECIFICAÇÃO
# ====================================================================

class TestPrecificacao(unittest.TestCase):

    def test_desconto_percentual(self):
        totais = calcular_totais(_itens_exemplo(), Desconto(TipoDesconto.PERCENTUAL, Decimal("10")))
        congelados = congelar_totais(totais)

        self.assertEqual(congelados.subtotal, Decimal("64.80"))
        self.assertEqual(congelados.valor_desconto, Decimal("6.48"))
        self.assertEqual(congelados.total, Decimal("58.32"))

    def test_desconto_fixo_limitado_ao_subtotal(self):
        """Cenário: desconto fixo maior que o subtotal zera o total, nunca o deixa negativo."""
        congelados = congelar_totais(
            calcular_totais(_itens_exemplo(), Desconto(TipoDesconto.VALOR_FIXO, Decimal("100")))
        )
        self.assertEqual(congelados.valor_desconto, Decimal("64.80"))
        self.assertEqual(congelados.total, Decimal("0.00"))

    def test_sem_desconto(self):
        totais = calcular_totais(_itens_exemplo())
        self.assertEqual(totais.valor_desconto, Decimal("0"))
        self.assertEqual(totais.total, totais.subtotal)

    def test_subtotal_nao_depende_da_ordem_dos_itens(self):
        itens = _itens_exemplo() + [
            ItemPedido(item_cardapio_id="doce-1", nome="Brownie", preco=Decimal("12.35"), quantidade=3),
        ]
        subtotais = {calcular_subtotal(list(ordem)) for ordem in itertools.permutations(itens)}
        self.assertEqual(subtotais, {Decimal("101.85")})

    def test_total_congelado_e_subtotal_menos_desconto(self):
        itens = [ItemPedido(item_cardapio_id="x", nome="X", preco=Decimal("33.33"), quantidade=3)]
        congelados = congelar_totais(calcular_totais(itens, Desconto(TipoDesconto.PERCENTUAL, Decimal("15"))))
        self.assertEqual(congelados.total, congelados.subtotal - congelados.valor_desconto)
        self.assertEqual(congelados.valor_desconto, Decimal("15.00"))

    def test_quantidade_invalida(self):
        itens = [ItemPedido(item_cardapio_id="x", nome="X", preco=Decimal("10"), quantidade=0)]
        with self.assertRaises(DadosInvalidosError):
            calcular_subtotal(itens)

    def test_quantidade_fracionaria_nao_e_truncada(self):
        """
        Cenário: 1.5 pizza não vira 1 pizza; a quantidade é rejeitada.
        """
        for quantidade in (1.5, Decimal("2.5"), "1.2", True):
            with self.subTest(quantidade=quantidade):
                itens = [ItemPedido(item_cardapio_id="x", nome="X", preco=Decimal("10"), quantidade=quantidade)]
                with self.assertRaises(DadosInvalidosError):
                    calcular_subtotal(itens)

    def test_quantidade_inteira_em_outros_formatos(self):
        itens = [
            ItemPedido(item_cardapio_id="x", nome="X", preco=Decimal("10"), quantidade=Decimal("2")),
            ItemPedido(item_cardapio_id="y", nome="Y", preco=Decimal("1"), quantidade=3.0),
        ]
        self.assertEqual(calcular_subtotal(itens), Decimal("23"))

    def test_preco_negativo(self):
        itens = [ItemPedido(item_cardapio_id="x", nome="X", preco=Decimal("-1"), quantidade=1)]
        with self.assertRaises(DadosInvalidosError):
            calcular_subtotal(itens)

    def test_tipo_de_desconto_desconhecido(self):
        with self.assertRaises(DadosInvalidosError):
            calcular_valor_desconto(Decimal("10"), Desconto("BRINDE", Decimal("1")))

    def test_quantizar_arredonda_meio_para_cima(self):
        self.assertEqual(quantizar(Decimal("0.125")), Decimal("0.13"))
        self.assertEqual(quantizar("2.344"), Decimal("2.34"))


# ====================================================================
# VALIDADOR DE CUPOM
# ====================================================================

class TestMotivoInvalidade(unittest.TestCase):

    def setUp(self):
        self.cupom = Cupom(codigo="PIZZA10", tipo_desconto=TipoDesconto.PERCENTUAL, valor_desconto=Decimal("10"))

    def test_cupom_valido(self):
        self.assertIsNone(motivo_invalidade(self.cupom, Decimal("10"), AGORA))

    def test_cupom_inexistente(self):
        self.assertEqual(motivo_invalidade(None, Decimal("10"), AGORA), MotivoCupomInvalido.NAO_ENCONTRADO)

    def test_cupom_inativo(self):
        self.cupom.ativo = False
        self.assertEqual(motivo_invalidade(self.cupom, Decimal("10"), AGORA), MotivoCupomInvalido.INATIVO)

    def test_cupom_expirado(self):
        self.cupom.expira_em = AGORA - timedelta(seconds=1)
        self.assertEqual(motivo_invalidade(self.cupom, Decimal("10"), AGORA), MotivoCupomInvalido.EXPIRADO)

    def test_expiracao_inclusiva(self):
        self.cupom.expira_em = AGORA
        self.assertIsNone(motivo_invalidade(self.cupom, Decimal("10"), AGORA))

    def test_cupom_esgotado(self):
        self.cupom.limite_uso = 5
        self.cupom.vezes_usado = 5
        self.assertEqual(motivo_invalidade(self.cupom, Decimal("10"), AGORA), MotivoCupomInvalido.ESGOTADO)

    def test_subtotal_abaixo_do_minimo(self):
        self.cupom.valor_minimo_pedido = Decimal("50.00")
        self.assertEqual(
            motivo_invalidade(self.cupom, Decimal("49.99"), AGORA), MotivoCupomInvalido.ABAIXO_DO_MINIMO
        )
        self.assertIsNone(motivo_invalidade(self.cupom, Decimal("50.00"), AGORA))


# ====================================================================
# MÁQUINA DE ESTADOS
# ====================================================================

class TestCicloVida(unittest.TestCase):

    CAMPOS_POR_EVENTO = {
        EventoPedido.ACEITAR: {"status", "atualizado_em"},
        EventoPedido.MARCAR_PRONTO: {"status", "atualizado_em"},
        EventoPedido.DESPACHAR: {"status", "atualizado_em", "rota_otimizada", "entregador", "entregador_id"},
        EventoPedido.MARCAR_ENTREGUE: {"status", "atualizado_em", "entregue_em"},
        EventoPedido.CANCELAR: {"status", "atualizado_em"},
    }

    def _campos_alterados(self, antes, depois):
        a, d = asdict(antes), asdict(depois)
        return {campo for campo in a if a[campo] != d[campo]}

    def test_todas_as_combinacoes(self):
        """Cada transição da tabela altera só os seus campos; as demais são rejeitadas."""
        for status, evento in itertools.product(StatusPedido.TODOS, EventoPedido.TODOS):
            with self.subTest(status=status, evento=evento):
                pedido = _pedido(status=status)
                if (status, evento) in TRANSICOES:
                    novo = aplicar_transicao(
                        pedido, evento, AGORA, rota="https://rota", nome_entregador="Carlos", entregador_id="ent-1",
                    )
                    self.assertEqual(novo.status, TRANSICOES[(status, evento)])
                    self.assertEqual(self._campos_alterados(pedido, novo), self.CAMPOS_POR_EVENTO[evento])
                else:
                    with self.assertRaises(TransicaoInvalidaError):
                        aplicar_transicao(pedido, evento, AGORA, nome_entregador="Carlos")

    def test_fluxo_completo(self):
        pedido = _pedido()
        for evento in (EventoPedido.ACEITAR, EventoPedido.MARCAR_PRONTO):
            pedido = aplicar_transicao(pedido, evento, AGORA)
        pedido = aplicar_transicao(pedido, EventoPedido.DESPACHAR, AGORA, nome_entregador="Carlos")
        pedido = aplicar_transicao(pedido, EventoPedido.MARCAR_ENTREGUE, AGORA)

        self.assertEqual(pedido.status, StatusPedido.ENTREGUE)
        self.assertEqual(pedido.entregador, "Carlos")
        self.assertEqual(pedido.entregue_em, AGORA)
        self.assertTrue(pedido.finalizado)

    def test_estados_terminais_nao_cancelam(self):
        for status in StatusPedido.TERMINAIS:
            with self.assertRaises(TransicaoInvalidaError):
                proximo_status(status, EventoPedido.CANCELAR)

    def test_despachar_exige_entregador(self):
        pedido = _pedido(status=StatusPedido.AGUARDANDO_RETIRADA)
        with self.assertRaises(DadosInvalidosError):
            aplicar_transicao(pedido, EventoPedido.DESPACHAR, AGORA)

    def test_entregue_em_nao_e_sobrescrito(self):
        anterior = AGORA - timedelta(minutes=5)
        pedido = _pedido(status=StatusPedido.SAIU_PARA_ENTREGA, entregue_em=anterior)
        novo = aplicar_transicao(pedido, EventoPedido.MARCAR_ENTREGUE, AGORA)
        self.assertEqual(novo.entregue_em, anterior)

    def test_transicao_rejeitada_nao_altera_pedido(self):
        pedido = _pedido(status=StatusPedido.PENDENTE)
        with self.assertRaises(TransicaoInvalidaError):
            aplicar_transicao(pedido, EventoPedido.MARCAR_ENTREGUE, AGORA)
        self.assertEqual(pedido.status, StatusPedido.PENDENTE)
        self.assertIsNone(pedido.entregue_em)

    def test_evento_para_status_destino(self):
        self.assertEqual(evento_para(StatusPedido.PENDENTE, StatusPedido.EM_PREPARO), EventoPedido.ACEITAR)
        self.assertEqual(evento_para(StatusPedido.EM_PREPARO, StatusPedido.CANCELADO), EventoPedido.CANCELAR)
        with self.assertRaises(TransicaoInvalidaError):
            evento_para(StatusPedido.PENDENTE, StatusPedido.ENTREGUE)
        with self.assertRaises(StatusInvalidoError):
            evento_para(StatusPedido.PENDENTE, "Voando")


# ====================================================================
# DASHBOARD
# ====================================================================

class TestAnalise(unittest.TestCase):

    def test_sem_pedidos(self):
        dias = ultimos_dias(date(2025, 3, 14))
        analise = calcular_analise([], dias, FUSO)

        self.assertEqual(analise.total_pedidos, 0)
        self.assertEqual(analise.receita_total, Decimal("0"))
        self.assertEqual(analise.ticket_medio, Decimal("0"))
        self.assertEqual(analise.pedidos_por_status, [])
        self.assertEqual(len(analise.receita_diaria), 7)
        self.assertTrue(all(r.receita == 0 for r in analise.receita_diaria))
        self.assertEqual(analise.receita_diaria[0].rotulo, "08/03")
        self.assertEqual(analise.receita_diaria[-1].rotulo, "14/03")
        self.assertIsNone(analise.tempo_medio_entrega_minutos)
        self.assertEqual(analise.uso_cupons.total_cupons_usados, 0)

    def test_tempo_medio_de_entrega(self):
        criado = AGORA - timedelta(hours=2)
        pedidos = [
            _pedido(status=StatusPedido.ENTREGUE, criado_em=criado, entregue_em=criado + timedelta(minutes=20)),
            _pedido(status=StatusPedido.ENTREGUE, criado_em=criado, entregue_em=criado + timedelta(minutes=26)),
            _pedido(status=StatusPedido.EM_PREPARO, criado_em=criado),
        ]
        analise = calcular_analise(pedidos, [date(2025, 3, 14)], FUSO)
        self.assertEqual(analise.tempo_medio_entrega_minutos, 23)

    def test_receita_ticket_e_cancelados(self):
        pedidos = [
            _pedido(valor_total=Decimal("50.00"), status_pagamento=StatusPagamento.PAGO),
            _pedido(valor_total=Decimal("30.00"), status=StatusPedido.EM_PREPARO),
            _pedido(valor_total=Decimal("99.00"), status=StatusPedido.CANCELADO, status_pagamento=StatusPagamento.PAGO),
        ]
        analise = calcular_analise(pedidos, [date(2025, 3, 14)], FUSO)

        self.assertEqual(analise.total_pedidos, 2)
        self.assertEqual(analise.receita_total, Decimal("50.00"))
        self.assertEqual(analise.ticket_medio, Decimal("25.00"))
        self.assertEqual(
            [(c.status, c.quantidade) for c in analise.pedidos_por_status],
            [(StatusPedido.PENDENTE, 1), (StatusPedido.EM_PREPARO, 1)],
        )

    def test_receita_diaria_usa_o_dia_local(self):
        # 01:30 UTC do dia 15 ainda é dia 14 em São Paulo.
        pedido = _pedido(
            valor_total=Decimal("40.00"),
            status_pagamento=StatusPagamento.PAGO,
            criado_em=datetime(2025, 3, 15, 1, 30, tzinfo=timezone.utc),
        )
        analise = calcular_analise([pedido], dias_do_periodo(date(2025, 3, 14), date(2025, 3, 15)), FUSO)
        self.assertEqual([r.receita for r in analise.receita_diaria], [Decimal("40.00"), Decimal("0")])

    def test_uso_de_cupons(self):
        pedidos = [
            _pedido(codigo_cupom_aplicado="PIZZA10", desconto_cupom_aplicado=Decimal("6.48")),
            _pedido(codigo_cupom_aplicado="ZERO", desconto_cupom_aplicado=Decimal("0.00")),
            _pedido(),
        ]
        analise = calcular_analise(pedidos, [date(2025, 3, 14)], FUSO)
        self.assertEqual(analise.uso_cupons.total_cupons_usados, 1)
        self.assertEqual(analise.uso_cupons.total_desconto, Decimal("6.48"))


# ====================================================================
# EXPORTAÇÃO CSV
# ====================================================================

class TestExportacaoCsv(unittest.TestCase):

    def test_sem_pedidos_retorna_so_o_cabecalho(self):
        conteudo = exportar_pedidos_csv([], FUSO)
        linhas = list(csv.reader(io.StringIO(conteudo)))
        self.assertEqual(linhas, [CABECALHO_CSV])

    def test_linha_do_pedido(self):
        itens = _itens_exemplo()
        itens[0].observacoes_item = "Sem cebola"
        pedido = _pedido(
            id="ped-1",
            id_exibicao="250314-ABCD",
            itens=itens,
            valor_total=Decimal("58.32"),
            codigo_cupom_aplicado="PIZZA10",
            desconto_cupom_aplicado=Decimal("6.48"),
            criado_em=AGORA,
        )
        conteudo = exportar_pedidos_csv([pedido], FUSO)

        self.assertTrue(conteudo.startswith('"ID Pedido","Código"'))
        cabecalho, linha = list(csv.reader(io.StringIO(conteudo)))
        registro = dict(zip(cabecalho, linha))
        self.assertEqual(registro["ID Pedido"], "ped-1")
        self.assertEqual(registro["Data"], "14/03/2025 12:00")
        self.assertEqual(registro["Total"], "58.32")
        self.assertEqual(registro["Desconto Cupom"], "6.48")
        self.assertEqual(registro["Itens"], "Pizza Margherita|2|29.90|Sem cebola ; Refrigerante|1|5.00|")

    def test_desconto_ausente_vira_zero(self):
        conteudo = exportar_pedidos_csv([_pedido()], FUSO)
        cabecalho, linha = list(csv.reader(io.StringIO(conteudo)))
        self.assertEqual(dict(zip(cabecalho, linha))["Desconto Cupom"], "0.00")


if __name__ == '__main__':
    unittest.main()

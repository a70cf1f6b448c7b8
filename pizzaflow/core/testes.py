# pizzaflow/core/testes.py

import random
import re
import threading
import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock
from zoneinfo import ZoneInfo

# Importamos as classes que queremos testar
from pizzaflow.core.use_cases import (
    ValidarCupomUseCase,
    GerenciarCuponsUseCase,
    CriarPedidoUseCase,
    SimularPedidoUseCase,
    TransicionarPedidoUseCase,
    DespacharMultiplosPedidosUseCase,
    GerenciarPedidosAdminUseCase,
    GerenciarCardapioUseCase,
    GerenciarEntregadoresUseCase,
    OtimizarRotaUseCase,
    BuscarEnderecoPorCepUseCase,
    CalcularAnaliseDashboardUseCase,
    ExportarPedidosCsvUseCase,
)
from pizzaflow.core.entities import (
    ItemCardapio, Cupom, Entregador, Pedido, ItemPedido, DadosNovoPedido, DadosItemNovoPedido,
    PlanoRota, TrechoRota, ParadaEntrega, EnderecoCep, StatusPedido, StatusPagamento,
    TipoPagamento, TipoDesconto, MotivoCupomInvalido,
)
from pizzaflow.core.exceptions import (
    DadosInvalidosError,
    PedidoNaoEncontradoError,
    ItemCardapioNaoEncontradoError,
    EntregadorNaoEncontradoError,
    ExclusaoBloqueadaError,
    TransicaoInvalidaError,
    CupomEsgotadoError,
    CodigoCupomDuplicadoError,
)
from pizzaflow.core.ciclo_vida import EventoPedido
from pizzaflow.infrastructure.memoria import (
    CupomRepositoryMemoria,
    ItemCardapioRepositoryMemoria,
    EntregadorRepositoryMemoria,
    PedidoRepositoryMemoria,
)

AGORA = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)
FUSO = ZoneInfo("America/Sao_Paulo")


def relogio_fixo():
    return AGORA


def _cupom(**kwargs):
    dados = dict(codigo="PIZZA10", tipo_desconto=TipoDesconto.PERCENTUAL, valor_desconto=Decimal("10"))
    dados.update(kwargs)
    return Cupom(**dados)


def _dados_pedido(**kwargs):
    """Carrinho padrão: 2x Pizza Margherita (29.90) + 1x Refrigerante (5.00) = 64.80."""
    dados = dict(
        nome_cliente="Maria Silva",
        endereco_cliente="Rua das Flores, 10 - Centro",
        tipo_pagamento=TipoPagamento.DINHEIRO,
        itens=[
            DadosItemNovoPedido(item_cardapio_id="pizza-1", quantidade=2, preco=Decimal("29.90"), nome="Pizza Margherita"),
            DadosItemNovoPedido(item_cardapio_id="bebida-1", quantidade=1, preco=Decimal("5.00"), nome="Refrigerante"),
        ],
    )
    dados.update(kwargs)
    return DadosNovoPedido(**dados)


def _pedido(**kwargs):
    dados = dict(
        nome_cliente="Maria Silva",
        endereco_cliente="Rua das Flores, 10",
        valor_total=Decimal("64.80"),
        itens=[ItemPedido(item_cardapio_id="pizza-1", nome="Pizza Margherita", preco=Decimal("29.90"), quantidade=2)],
        id_exibicao="250314-AAAA",
    )
    dados.update(kwargs)
    return Pedido(**dados)


class RepositoriosMemoriaMixin:
    """Monta os repositórios em memória compartilhando o mesmo cupom_repo."""

    def montar_repositorios(self, cupons=(), itens=(), entregadores=()):
        self.cupom_repo = CupomRepositoryMemoria(list(cupons))
        self.pedido_repo = PedidoRepositoryMemoria(self.cupom_repo)
        self.item_cardapio_repo = ItemCardapioRepositoryMemoria(list(itens), self.pedido_repo)
        self.entregador_repo = EntregadorRepositoryMemoria(list(entregadores))


# ====================================================================
# VALIDAÇÃO DE CUPOM
# ====================================================================

class TestValidarCupom(unittest.TestCase):

    def setUp(self):
        self.cupom_repo_mock = Mock()
        self.use_case = ValidarCupomUseCase(self.cupom_repo_mock, relogio=relogio_fixo)

    def test_cupom_valido(self):
        cupom = _cupom()
        self.cupom_repo_mock.buscar_por_codigo.return_value = cupom

        resultado = self.use_case.executar(" PIZZA10 ", Decimal("64.80"))

        self.assertTrue(resultado.valido)
        self.assertEqual(resultado.cupom, cupom)
        self.cupom_repo_mock.buscar_por_codigo.assert_called_once_with("PIZZA10")

    def test_codigo_vazio_nao_consulta_o_repositorio(self):
        resultado = self.use_case.executar("   ", Decimal("10"))

        self.assertFalse(resultado.valido)
        self.assertEqual(resultado.motivo, MotivoCupomInvalido.NAO_ENCONTRADO)
        self.cupom_repo_mock.buscar_por_codigo.assert_not_called()

    def test_cupom_esgotado_retorna_motivo(self):
        self.cupom_repo_mock.buscar_por_codigo.return_value = _cupom(limite_uso=1, vezes_usado=1)

        resultado = self.use_case.executar("PIZZA10", Decimal("10"))

        self.assertIsNone(resultado.cupom)
        self.assertEqual(resultado.motivo, MotivoCupomInvalido.ESGOTADO)


# ====================================================================
# CRIAÇÃO DE PEDIDO
# ====================================================================

class TestCriarPedido(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.cupom = _cupom(limite_uso=1)
        self.montar_repositorios(cupons=[self.cupom])
        self.use_case = CriarPedidoUseCase(
            pedido_repo=self.pedido_repo,
            cupom_repo=self.cupom_repo,
            item_cardapio_repo=self.item_cardapio_repo,
            relogio=relogio_fixo,
        )

    def test_criar_pedido_com_cupom(self):
        """
        Cenário: pedido com cupom de 10% sobre 64.80.
        """
        pedido = self.use_case.executar(_dados_pedido(codigo_cupom="PIZZA10"))

        self.assertEqual(pedido.valor_total, Decimal("58.32"))
        self.assertEqual(pedido.desconto_cupom_aplicado, Decimal("6.48"))
        self.assertEqual(pedido.codigo_cupom_aplicado, "PIZZA10")
        self.assertEqual(pedido.cupom_id, self.cupom.id)
        self.assertEqual(pedido.status, StatusPedido.PENDENTE)
        self.assertEqual(pedido.status_pagamento, StatusPagamento.PENDENTE)
        self.assertEqual(pedido.criado_em, AGORA)
        self.assertEqual(len(pedido.itens), 2)
        self.assertEqual(self.cupom_repo.buscar_por_id(self.cupom.id).vezes_usado, 1)

    def test_id_exibicao_curto(self):
        pedido = self.use_case.executar(_dados_pedido())
        self.assertRegex(pedido.id_exibicao, r"^250314-[0-9A-F]{4}$")

    def test_cupom_invalido_segue_sem_desconto(self):
        pedido = self.use_case.executar(_dados_pedido(codigo_cupom="NAOEXISTE"))

        self.assertEqual(pedido.valor_total, Decimal("64.80"))
        self.assertIsNone(pedido.codigo_cupom_aplicado)
        self.assertIsNone(pedido.desconto_cupom_aplicado)

    def test_pagamento_online_ja_nasce_pago(self):
        pedido = self.use_case.executar(_dados_pedido(tipo_pagamento=TipoPagamento.ONLINE))
        self.assertEqual(pedido.status_pagamento, StatusPagamento.PAGO)

    def test_endereco_estruturado(self):
        pedido = self.use_case.executar(_dados_pedido(
            endereco_cliente="", rua="Rua A", numero="10", bairro="Centro",
            cidade="São Paulo", estado="SP", cep="01310100",
        ))
        self.assertEqual(pedido.endereco_cliente, "Rua A, 10 - Centro - São Paulo/SP - CEP: 01310100")

    def test_dados_obrigatorios(self):
        for dados in (
            _dados_pedido(itens=[]),
            _dados_pedido(nome_cliente="  "),
            _dados_pedido(endereco_cliente=""),
            _dados_pedido(tipo_pagamento="Cheque"),
        ):
            with self.subTest(dados=dados):
                with self.assertRaises(DadosInvalidosError):
                    self.use_case.executar(dados)
        self.assertEqual(self.pedido_repo.listar_todos(), [])

    def test_quantidade_zero_e_rejeitada(self):
        dados = _dados_pedido()
        dados.itens[0].quantidade = 0
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(dados)

    def test_quantidade_fracionaria_e_rejeitada(self):
        # ARRANGE
        dados = _dados_pedido()
        dados.itens[0].quantidade = 1.5

        # ACT / ASSERT
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(dados)
        self.assertEqual(self.pedido_repo.listar_todos(), [])

    def test_falha_de_armazenamento_nao_consome_o_cupom(self):
        """
        Cenário: a gravação falha depois do cupom ser reservado.
        Nenhum pedido é gravado e o contador do cupom não muda.
        """
        self.pedido_repo.falhar_proxima_gravacao = RuntimeError("disco cheio")

        with self.assertRaises(RuntimeError):
            self.use_case.executar(_dados_pedido(codigo_cupom="PIZZA10"))

        self.assertEqual(self.pedido_repo.listar_todos(), [])
        self.assertEqual(self.cupom_repo.buscar_por_id(self.cupom.id).vezes_usado, 0)

    def test_reprecificar_usa_o_cardapio(self):
        self.item_cardapio_repo.salvar(
            ItemCardapio(id="pizza-1", nome="Pizza Margherita", preco=Decimal("35.00"), categoria="Pizzas")
        )
        self.item_cardapio_repo.salvar(
            ItemCardapio(id="bebida-1", nome="Refrigerante Lata", preco=Decimal("6.00"), categoria="Bebidas")
        )
        self.use_case.reprecificar = True

        pedido = self.use_case.executar(_dados_pedido())

        self.assertEqual(pedido.valor_total, Decimal("76.00"))
        self.assertEqual(pedido.itens[1].nome, "Refrigerante Lata")

    def test_reprecificar_item_inexistente(self):
        self.use_case.reprecificar = True
        with self.assertRaises(ItemCardapioNaoEncontradoError):
            self.use_case.executar(_dados_pedido())


class TestCriarPedidoCupomEsgotado(unittest.TestCase):
    """O cupom esgota entre a validação e a gravação: o pedido é registrado sem desconto."""

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.cupom_repo_mock = Mock()
        self.cupom = _cupom(limite_uso=1)
        self.cupom_repo_mock.buscar_por_codigo.return_value = self.cupom
        self.pedido_repo_mock.criar_pedido.side_effect = [CupomEsgotadoError(self.cupom.id), _pedido()]

        self.use_case = CriarPedidoUseCase(
            pedido_repo=self.pedido_repo_mock,
            cupom_repo=self.cupom_repo_mock,
            item_cardapio_repo=Mock(),
            relogio=relogio_fixo,
        )

    def test_pedido_registrado_sem_cupom(self):
        with self.assertLogs("pizzaflow.core.use_cases", level="WARNING"):
            self.use_case.executar(_dados_pedido(codigo_cupom="PIZZA10"))

        self.assertEqual(self.pedido_repo_mock.criar_pedido.call_count, 2)
        primeira = self.pedido_repo_mock.criar_pedido.call_args_list[0].args[0]
        segunda = self.pedido_repo_mock.criar_pedido.call_args_list[1].args[0]

        self.assertEqual(primeira.cupom_id, self.cupom.id)
        self.assertEqual(primeira.valor_total, Decimal("58.32"))
        self.assertIsNone(segunda.cupom_id)
        self.assertIsNone(segunda.codigo_cupom_aplicado)
        self.assertIsNone(segunda.desconto_cupom_aplicado)
        self.assertEqual(segunda.valor_total, Decimal("64.80"))
        self.assertEqual(segunda.id_exibicao, primeira.id_exibicao)


class TestCupomConcorrente(RepositoriosMemoriaMixin, unittest.TestCase):

    def test_dez_pedidos_simultaneos_com_limite_um(self):
        """
        Cenário: 10 clientes usam ao mesmo tempo um cupom com limite_uso=1.
        Exatamente um pedido recebe o desconto e o contador termina em 1.
        """
        cupom = _cupom(limite_uso=1)
        self.montar_repositorios(cupons=[cupom])
        use_case = CriarPedidoUseCase(self.pedido_repo, self.cupom_repo, self.item_cardapio_repo, relogio_fixo)

        barreira = threading.Barrier(10)
        erros = []

        def criar():
            barreira.wait()
            try:
                use_case.executar(_dados_pedido(codigo_cupom="PIZZA10"))
            except Exception as e:
                erros.append(e)

        threads = [threading.Thread(target=criar) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        pedidos = self.pedido_repo.listar_todos()
        com_desconto = [p for p in pedidos if p.codigo_cupom_aplicado]
        self.assertEqual(erros, [])
        self.assertEqual(len(pedidos), 10)
        self.assertEqual(len(com_desconto), 1)
        self.assertEqual(com_desconto[0].valor_total, Decimal("58.32"))
        self.assertEqual(self.cupom_repo.buscar_por_id(cupom.id).vezes_usado, 1)

    def test_validacao_durante_a_gravacao_nao_ve_uso_parcial(self):
        """
        Cenário: outro cliente valida o cupom enquanto o único uso está sendo
        gravado. A validação espera o fim da gravação e nunca enxerga o cupom
        esgotado sem o pedido correspondente.
        """
        # ARRANGE
        cupom = _cupom(limite_uso=1)
        self.montar_repositorios(cupons=[cupom])
        validar = ValidarCupomUseCase(self.cupom_repo, relogio=relogio_fixo)
        observado = {}

        class DadosObservados(dict):
            def __setitem__(armazenamento, chave, valor):
                leitor = threading.Thread(
                    target=lambda: observado.update(resultado=validar.executar("PIZZA10", Decimal("64.80")))
                )
                leitor.start()
                leitor.join(timeout=0.2)
                observado['validou_durante_a_gravacao'] = 'resultado' in observado
                observado['leitor'] = leitor
                super().__setitem__(chave, valor)

        self.pedido_repo._dados = DadosObservados()

        # ACT
        self.pedido_repo.criar_pedido(_pedido(cupom_id=cupom.id, codigo_cupom_aplicado="PIZZA10"))
        observado['leitor'].join()

        # ASSERT
        self.assertFalse(observado['validou_durante_a_gravacao'])
        self.assertEqual(observado['resultado'].motivo, MotivoCupomInvalido.ESGOTADO)
        self.assertEqual(len(self.pedido_repo.listar_todos()), 1)

    def test_gravacao_falha_sem_mexer_no_contador(self):
        # ARRANGE
        cupom = _cupom(limite_uso=1)
        self.montar_repositorios(cupons=[cupom])
        self.pedido_repo.falhar_proxima_gravacao = RuntimeError("disco cheio")

        # ACT
        with self.assertRaises(RuntimeError):
            self.pedido_repo.criar_pedido(_pedido(cupom_id=cupom.id))

        # ASSERT: o único uso continua disponível para o próximo pedido
        self.assertEqual(self.cupom_repo.buscar_por_id(cupom.id).vezes_usado, 0)
        self.pedido_repo.criar_pedido(_pedido(cupom_id=cupom.id))
        self.assertEqual(self.cupom_repo.buscar_por_id(cupom.id).vezes_usado, 1)


# ====================================================================
# SIMULAÇÃO
# ====================================================================

class TestSimularPedido(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        itens = [
            ItemCardapio(nome="Pizza Calabresa", preco=Decimal("42.90"), categoria="Pizzas"),
            ItemCardapio(nome="Pizza Margherita", preco=Decimal("45.90"), categoria="Pizzas"),
            ItemCardapio(nome="Refrigerante", preco=Decimal("6.00"), categoria="Pizzas"),
        ]
        cupons = [
            _cupom(codigo="MINIMO", valor_minimo_pedido=Decimal("10.00")),
            _cupom(codigo="INATIVO", ativo=False),
            _cupom(codigo="LIVRE", tipo_desconto=TipoDesconto.VALOR_FIXO, valor_desconto=Decimal("5.00")),
        ]
        self.montar_repositorios(cupons=cupons, itens=itens)
        criar_uc = CriarPedidoUseCase(self.pedido_repo, self.cupom_repo, self.item_cardapio_repo, relogio_fixo)
        self.use_case = SimularPedidoUseCase(
            criar_uc, self.item_cardapio_repo, self.cupom_repo, relogio_fixo, random.Random(7),
        )

    def test_simula_com_dois_itens_e_cupom_sem_minimo(self):
        pedido = self.use_case.executar()

        self.assertEqual([(i.nome, i.quantidade) for i in pedido.itens],
                         [("Pizza Calabresa", 2), ("Pizza Margherita", 1)])
        self.assertEqual(pedido.itens[0].observacoes_item, "Extra queijo em uma")
        self.assertEqual(pedido.codigo_cupom_aplicado, "LIVRE")
        self.assertEqual(pedido.valor_total, Decimal("126.70"))
        self.assertTrue(pedido.nome_cliente.startswith("Cliente Simulado "))
        self.assertIn(pedido.tipo_pagamento, (TipoPagamento.DINHEIRO, TipoPagamento.CARTAO))

    def test_cardapio_vazio(self):
        self.montar_repositorios()
        use_case = SimularPedidoUseCase(Mock(), self.item_cardapio_repo, self.cupom_repo, relogio_fixo)
        with self.assertRaises(DadosInvalidosError):
            use_case.executar()


# ====================================================================
# CICLO DE VIDA E DESPACHO
# ====================================================================

class TestTransicionarPedido(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.entregador = Entregador(nome="Carlos Souza")
        self.inativo = Entregador(nome="Ana Lima", ativo=False)
        self.montar_repositorios(entregadores=[self.entregador, self.inativo])
        self.use_case = TransicionarPedidoUseCase(self.pedido_repo, self.entregador_repo, relogio_fixo)

    def _gravar(self, **kwargs):
        return self.pedido_repo.criar_pedido(_pedido(**kwargs))

    def test_aceitar(self):
        pedido = self._gravar()
        atualizado = self.use_case.executar(pedido.id, EventoPedido.ACEITAR)
        self.assertEqual(atualizado.status, StatusPedido.EM_PREPARO)
        self.assertEqual(self.pedido_repo.buscar_por_id(pedido.id).status, StatusPedido.EM_PREPARO)

    def test_despachar_com_entregador_cadastrado(self):
        pedido = self._gravar(status=StatusPedido.AGUARDANDO_RETIRADA)

        atualizado = self.use_case.executar(
            pedido.id, EventoPedido.DESPACHAR, rota="https://rota", entregador_id=self.entregador.id,
        )

        self.assertEqual(atualizado.status, StatusPedido.SAIU_PARA_ENTREGA)
        self.assertEqual(atualizado.entregador, "Carlos Souza")
        self.assertEqual(atualizado.entregador_id, self.entregador.id)
        self.assertEqual(atualizado.rota_otimizada, "https://rota")

    def test_despachar_com_nome_livre(self):
        pedido = self._gravar(status=StatusPedido.AGUARDANDO_RETIRADA)
        atualizado = self.use_case.executar(pedido.id, EventoPedido.DESPACHAR, nome_entregador=" João ")
        self.assertEqual(atualizado.entregador, "João")
        self.assertIsNone(atualizado.entregador_id)

    def test_despachar_com_entregador_inativo_ou_inexistente(self):
        pedido = self._gravar(status=StatusPedido.AGUARDANDO_RETIRADA)
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(pedido.id, EventoPedido.DESPACHAR, entregador_id=self.inativo.id)
        with self.assertRaises(EntregadorNaoEncontradoError):
            self.use_case.executar(pedido.id, EventoPedido.DESPACHAR, entregador_id="nao-existe")

    def test_transicao_invalida_nao_grava(self):
        pedido = self._gravar()
        with self.assertRaises(TransicaoInvalidaError):
            self.use_case.executar(pedido.id, EventoPedido.MARCAR_ENTREGUE)
        self.assertEqual(self.pedido_repo.buscar_por_id(pedido.id).status, StatusPedido.PENDENTE)

    def test_atualizar_status_pelo_destino(self):
        pedido = self._gravar(status=StatusPedido.SAIU_PARA_ENTREGA, entregador="Carlos")
        atualizado = self.use_case.atualizar_status(pedido.id, StatusPedido.ENTREGUE)
        self.assertEqual(atualizado.status, StatusPedido.ENTREGUE)
        self.assertEqual(atualizado.entregue_em, AGORA)

    def test_pedido_inexistente(self):
        with self.assertRaises(PedidoNaoEncontradoError):
            self.use_case.executar("nao-existe", EventoPedido.ACEITAR)


class TestDespacharMultiplos(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.montar_repositorios(entregadores=[Entregador(nome="Carlos Souza")])
        self.transicionar_uc = TransicionarPedidoUseCase(self.pedido_repo, self.entregador_repo, relogio_fixo)
        self.use_case = DespacharMultiplosPedidosUseCase(self.transicionar_uc)

    def test_falhas_individuais_nao_interrompem_o_lote(self):
        pronto_1 = self.pedido_repo.criar_pedido(_pedido(status=StatusPedido.AGUARDANDO_RETIRADA))
        pronto_2 = self.pedido_repo.criar_pedido(_pedido(status=StatusPedido.AGUARDANDO_RETIRADA))
        pendente = self.pedido_repo.criar_pedido(_pedido(status=StatusPedido.PENDENTE))
        plano = PlanoRota(trechos=[
            TrechoRota(pedido_ids=[pronto_1.id, pendente.id], descricao="A -> B", url_mapa="https://trecho-1"),
            TrechoRota(pedido_ids=["nao-existe", pronto_2.id], descricao="C -> D", url_mapa="https://trecho-2"),
        ])

        resultado = self.use_case.executar(plano, nome_entregador="Carlos")

        self.assertEqual([p.id for p in resultado.sucessos], [pronto_1.id, pronto_2.id])
        self.assertEqual([f.pedido_id for f in resultado.falhas], [pendente.id, "nao-existe"])
        self.assertEqual(self.pedido_repo.buscar_por_id(pronto_2.id).rota_otimizada, "https://trecho-2")
        self.assertEqual(self.pedido_repo.buscar_por_id(pendente.id).status, StatusPedido.PENDENTE)

    def test_erro_inesperado_vira_falha(self):
        transicionar_mock = Mock()
        transicionar_mock.resolver_entregador.return_value = ("Carlos", None)
        transicionar_mock.executar.side_effect = [_pedido(), RuntimeError("falha de rede")]
        plano = PlanoRota(trechos=[TrechoRota(pedido_ids=["p1", "p2"], descricao="", url_mapa="https://x")])

        resultado = DespacharMultiplosPedidosUseCase(transicionar_mock).executar(plano, nome_entregador="Carlos")

        self.assertEqual(len(resultado.sucessos), 1)
        self.assertEqual(resultado.falhas[0].pedido_id, "p2")
        self.assertIn("falha de rede", resultado.falhas[0].motivo)

    def test_exige_entregador(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(PlanoRota(trechos=[]))


# ====================================================================
# CASOS DE USO ADMINISTRATIVOS
# ====================================================================

class TestGerenciarPedidosAdmin(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.montar_repositorios()
        self.use_case = GerenciarPedidosAdminUseCase(self.pedido_repo, relogio_fixo)
        self.pedido = self.pedido_repo.criar_pedido(_pedido())

    def test_status_nao_e_editavel(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.atualizar_detalhes(self.pedido.id, {"status": StatusPedido.ENTREGUE})

    def test_editar_detalhes(self):
        atualizado = self.use_case.atualizar_detalhes(
            self.pedido.id, {"observacoes": "Portão azul", "valor_total": "60.005"},
        )
        self.assertEqual(atualizado.observacoes, "Portão azul")
        self.assertEqual(atualizado.valor_total, Decimal("60.01"))
        self.assertEqual(atualizado.atualizado_em, AGORA)

    def test_registrar_pagamento(self):
        atualizado = self.use_case.registrar_pagamento(self.pedido.id, TipoPagamento.CARTAO)
        self.assertEqual(atualizado.status_pagamento, StatusPagamento.PAGO)
        self.assertEqual(atualizado.tipo_pagamento, TipoPagamento.CARTAO)

    def test_listar_por_status(self):
        self.pedido_repo.criar_pedido(_pedido(status=StatusPedido.EM_PREPARO))
        self.assertEqual(len(self.use_case.listar_todos()), 2)
        self.assertEqual(len(self.use_case.listar_todos(StatusPedido.EM_PREPARO)), 1)


class TestGerenciarCardapio(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.item = ItemCardapio(id="pizza-1", nome="Pizza Margherita", preco=Decimal("29.90"), categoria="Pizzas")
        self.montar_repositorios(itens=[self.item])
        self.use_case = GerenciarCardapioUseCase(self.item_cardapio_repo, relogio_fixo)

    def test_exclusao_bloqueada_quando_referenciado(self):
        self.pedido_repo.criar_pedido(_pedido())

        with self.assertRaises(ExclusaoBloqueadaError) as ctx:
            self.use_case.deletar(self.item.id)

        self.assertEqual(ctx.exception.referencias, 1)
        self.assertIsNotNone(self.item_cardapio_repo.buscar_por_id(self.item.id))

    def test_exclusao_sem_referencias(self):
        self.use_case.deletar(self.item.id)
        self.assertIsNone(self.item_cardapio_repo.buscar_por_id(self.item.id))
        with self.assertRaises(ItemCardapioNaoEncontradoError):
            self.use_case.deletar(self.item.id)

    def test_preco_deve_ser_positivo(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.criar(ItemCardapio(nome="Grátis", preco=Decimal("0"), categoria="Pizzas"))

    def test_atualizar(self):
        atualizado = self.use_case.atualizar(self.item.id, {"preco": Decimal("31.5"), "em_promocao": True})
        self.assertEqual(atualizado.preco, Decimal("31.50"))
        self.assertTrue(atualizado.em_promocao)


class TestGerenciarEntregadores(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.entregador = Entregador(nome="Carlos Souza")
        self.montar_repositorios(entregadores=[self.entregador])
        self.use_case = GerenciarEntregadoresUseCase(self.entregador_repo, self.pedido_repo, relogio_fixo)

    def test_exclusao_bloqueada_com_pedido_ativo(self):
        self.pedido_repo.criar_pedido(_pedido(status=StatusPedido.SAIU_PARA_ENTREGA, entregador_id=self.entregador.id))
        with self.assertRaises(ExclusaoBloqueadaError):
            self.use_case.deletar(self.entregador.id)

    def test_exclusao_permitida_com_pedidos_finalizados(self):
        self.pedido_repo.criar_pedido(_pedido(status=StatusPedido.ENTREGUE, entregador_id=self.entregador.id))
        self.use_case.deletar(self.entregador.id)
        self.assertEqual(self.entregador_repo.listar_todos(), [])

    def test_listar_apenas_ativos(self):
        self.use_case.criar(Entregador(nome="Ana Lima", ativo=False))
        self.assertEqual(len(self.use_case.listar_todos()), 2)
        self.assertEqual([e.nome for e in self.use_case.listar_todos(apenas_ativos=True)], ["Carlos Souza"])


class TestGerenciarCupons(RepositoriosMemoriaMixin, unittest.TestCase):

    def setUp(self):
        self.montar_repositorios()
        self.use_case = GerenciarCuponsUseCase(self.cupom_repo, relogio_fixo)

    def test_criar_normaliza_valores(self):
        cupom = self.use_case.criar(_cupom(valor_desconto=Decimal("12.5"), vezes_usado=3))
        self.assertEqual(cupom.valor_desconto, Decimal("12.50"))
        self.assertEqual(cupom.vezes_usado, 0)

    def test_validacoes(self):
        for cupom in (
            _cupom(codigo="PIZZA 10"),
            _cupom(valor_desconto=Decimal("101")),
            _cupom(valor_desconto=Decimal("-1")),
            _cupom(limite_uso=0),
            _cupom(valor_minimo_pedido=Decimal("-5")),
            _cupom(tipo_desconto="BRINDE"),
        ):
            with self.subTest(cupom=cupom):
                with self.assertRaises(DadosInvalidosError):
                    self.use_case.criar(cupom)

    def test_codigo_duplicado(self):
        self.use_case.criar(_cupom())
        with self.assertRaises(CodigoCupomDuplicadoError):
            self.use_case.criar(_cupom())

    def test_limite_menor_que_usos(self):
        cupom = self.use_case.criar(_cupom(limite_uso=5))
        self.cupom_repo.incrementar_uso(cupom.id)
        self.cupom_repo.incrementar_uso(cupom.id)
        with self.assertRaises(DadosInvalidosError):
            self.use_case.atualizar(cupom.id, {"limite_uso": 1})

    def test_atualizar_nao_altera_contador(self):
        cupom = self.use_case.criar(_cupom(limite_uso=5))
        self.cupom_repo.incrementar_uso(cupom.id)
        atualizado = self.use_case.atualizar(cupom.id, {"ativo": False})
        self.assertFalse(atualizado.ativo)
        self.assertEqual(atualizado.vezes_usado, 1)


# ====================================================================
# ROTAS, CEP, DASHBOARD E EXPORTAÇÃO
# ====================================================================

class TestOtimizarRota(unittest.TestCase):

    def setUp(self):
        self.rota_gateway_mock = Mock()
        self.pedido_repo_mock = Mock()
        self.use_case = OtimizarRotaUseCase(self.rota_gateway_mock, self.pedido_repo_mock, "Pizzaria, 1")

    def test_planejar(self):
        pedido = _pedido(id="p1", endereco_cliente="Rua B, 2")
        self.pedido_repo_mock.buscar_por_id.return_value = pedido

        self.use_case.planejar(["p1"])

        self.rota_gateway_mock.planejar_multiplas_paradas.assert_called_once_with(
            "Pizzaria, 1", [ParadaEntrega(pedido_id="p1", endereco="Rua B, 2")]
        )

    def test_planejar_sem_pedidos(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.planejar([])

    def test_rota_de_pedido_inexistente(self):
        self.pedido_repo_mock.buscar_por_id.return_value = None
        with self.assertRaises(PedidoNaoEncontradoError):
            self.use_case.rota_para_pedido("x")
        self.rota_gateway_mock.descrever_rota.assert_not_called()


class TestBuscarEnderecoPorCep(unittest.TestCase):

    def setUp(self):
        self.cep_gateway_mock = Mock()
        self.use_case = BuscarEnderecoPorCepUseCase(self.cep_gateway_mock)

    def test_cep_com_mascara(self):
        self.cep_gateway_mock.buscar_endereco.return_value = EnderecoCep(cep="01310100", rua="Avenida Paulista")
        endereco = self.use_case.executar("01310-100")
        self.assertEqual(endereco.rua, "Avenida Paulista")
        self.cep_gateway_mock.buscar_endereco.assert_called_once_with("01310100")

    def test_cep_invalido(self):
        self.assertIsNone(self.use_case.executar("123"))
        self.cep_gateway_mock.buscar_endereco.assert_not_called()


class TestCalcularAnaliseDashboard(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.pedido_repo_mock.listar_todos.return_value = []
        self.pedido_repo_mock.listar_por_periodo.return_value = []
        self.use_case = CalcularAnaliseDashboardUseCase(self.pedido_repo_mock, FUSO, relogio_fixo)

    def test_sem_periodo_usa_ultimos_sete_dias(self):
        analise = self.use_case.executar()
        self.assertEqual(len(analise.receita_diaria), 7)
        self.assertEqual(analise.receita_diaria[-1].data, date(2025, 3, 14))
        self.pedido_repo_mock.listar_todos.assert_called_once_with()

    def test_periodo_usa_limites_locais(self):
        analise = self.use_case.executar(date(2025, 3, 1), date(2025, 3, 3))

        inicio, fim = self.pedido_repo_mock.listar_por_periodo.call_args.args
        self.assertEqual(inicio, datetime(2025, 3, 1, tzinfo=FUSO))
        self.assertEqual(fim, datetime(2025, 3, 4, tzinfo=FUSO))
        self.assertEqual([r.rotulo for r in analise.receita_diaria], ["01/03", "02/03", "03/03"])

    def test_periodo_invalido(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(date(2025, 3, 5), date(2025, 3, 1))
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(inicio=date(2025, 3, 5))


class TestExportarPedidosCsv(unittest.TestCase):

    def test_filtra_por_status(self):
        pedido_repo_mock = Mock()
        pedido_repo_mock.listar_todos.return_value = [_pedido(criado_em=AGORA)]

        conteudo = ExportarPedidosCsvUseCase(pedido_repo_mock, FUSO).executar(StatusPedido.PENDENTE)

        pedido_repo_mock.listar_todos.assert_called_once_with(StatusPedido.PENDENTE)
        self.assertEqual(len(conteudo.strip().split("\n")), 2)
        self.assertTrue(re.search(r'"14/03/2025 12:00"', conteudo))


if __name__ == '__main__':
    unittest.main()

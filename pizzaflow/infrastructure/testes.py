import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import StringIO
from unittest.mock import Mock, patch

import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

# Importamos as classes que queremos testar
from pizzaflow.cardapio.models import ItemCardapio as ItemCardapioModel
from pizzaflow.cupons.models import Cupom as CupomModel
from pizzaflow.entregas.models import Entregador as EntregadorModel
from pizzaflow.pedidos.models import Pedido as PedidoModel
from pizzaflow.infrastructure.repositories import (
    ItemCardapioRepositoryDjango,
    CupomRepositoryDjango,
    PedidoRepositoryDjango,
)
from pizzaflow.infrastructure.gateways import GeoapifyRotaGateway, BrasilApiCepGateway
from pizzaflow.core.entities import (
    ItemCardapio, Cupom, Pedido, ItemPedido, ParadaEntrega, StatusPedido, TipoDesconto,
)
from pizzaflow.core.exceptions import (
    ExclusaoBloqueadaError,
    CupomEsgotadoError,
    CodigoCupomDuplicadoError,
    PedidoNaoEncontradoError,
)

AGORA = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)


def _pedido(item_cardapio_id, **kwargs):
    dados = dict(
        nome_cliente="Maria Silva",
        endereco_cliente="Rua das Flores, 10",
        valor_total=Decimal("59.80"),
        itens=[ItemPedido(item_cardapio_id=item_cardapio_id, nome="Pizza Margherita",
                          preco=Decimal("29.90"), quantidade=2, observacoes_item="Sem cebola")],
        id_exibicao="250314-AAAA",
        criado_em=AGORA,
        atualizado_em=AGORA,
    )
    dados.update(kwargs)
    return Pedido(**dados)


# A classe de teste herda do TestCase do Django, que prepara o banco de dados de teste
class ItemCardapioRepositoryTestCase(TestCase):

    def setUp(self):
        self.repository = ItemCardapioRepositoryDjango()
        self.pedido_repository = PedidoRepositoryDjango()
        self.item_model = ItemCardapioModel.objects.create(
            nome='Pizza Margherita', preco=Decimal('29.90'), categoria='Pizzas Salgadas',
        )

    def test_salvar_e_buscar(self):
        item = self.repository.salvar(ItemCardapio(nome='Suco', preco=Decimal('9.50'), categoria='Bebidas'))

        encontrado = self.repository.buscar_por_id(item.id)

        self.assertIsInstance(encontrado, ItemCardapio)
        self.assertEqual(encontrado.preco, Decimal('9.50'))
        self.assertEqual([i.categoria for i in self.repository.listar_todos()], ['Bebidas', 'Pizzas Salgadas'])

    def test_buscar_inexistente_retorna_none(self):
        self.assertIsNone(self.repository.buscar_por_id('id-nao-existente'))

    def test_exclusao_protegida_pelo_banco(self):
        """
        Cenário: o item já foi vendido. O PROTECT do banco impede a exclusão
        mesmo chamando o repositório diretamente.
        """
        self.pedido_repository.criar_pedido(_pedido(self.item_model.id))

        self.assertEqual(self.repository.contar_referencias(self.item_model.id), 1)
        with self.assertRaises(ExclusaoBloqueadaError):
            self.repository.deletar(self.item_model.id)
        self.assertTrue(ItemCardapioModel.objects.filter(pk=self.item_model.id).exists())

    def test_deletar(self):
        self.assertTrue(self.repository.deletar(self.item_model.id))
        self.assertFalse(self.repository.deletar(self.item_model.id))


class CupomRepositoryTestCase(TestCase):

    def setUp(self):
        self.repository = CupomRepositoryDjango()
        self.cupom = self.repository.salvar(
            Cupom(codigo='PIZZA10', tipo_desconto=TipoDesconto.PERCENTUAL, valor_desconto=Decimal('10'), limite_uso=1)
        )

    def test_incremento_condicional(self):
        self.assertTrue(self.repository.incrementar_uso(self.cupom.id))
        self.assertFalse(self.repository.incrementar_uso(self.cupom.id))
        self.assertEqual(CupomModel.objects.get(pk=self.cupom.id).vezes_usado, 1)

    def test_incremento_sem_limite(self):
        cupom = self.repository.salvar(
            Cupom(codigo='LIVRE', tipo_desconto=TipoDesconto.VALOR_FIXO, valor_desconto=Decimal('5'))
        )
        for _ in range(3):
            self.assertTrue(self.repository.incrementar_uso(cupom.id))
        self.assertEqual(self.repository.buscar_por_id(cupom.id).vezes_usado, 3)

    def test_busca_por_codigo_diferencia_maiusculas(self):
        self.assertIsNotNone(self.repository.buscar_por_codigo('PIZZA10'))
        self.assertIsNone(self.repository.buscar_por_codigo('pizza10'))

    def test_codigo_duplicado(self):
        with self.assertRaises(CodigoCupomDuplicadoError):
            self.repository.salvar(
                Cupom(codigo='PIZZA10', tipo_desconto=TipoDesconto.VALOR_FIXO, valor_desconto=Decimal('1'))
            )

    def test_salvar_nao_sobrescreve_contador(self):
        self.repository.incrementar_uso(self.cupom.id)
        self.cupom.descricao = 'Dez por cento'
        self.cupom.vezes_usado = 0

        salvo = self.repository.salvar(self.cupom)

        self.assertEqual(salvo.descricao, 'Dez por cento')
        self.assertEqual(salvo.vezes_usado, 1)


class PedidoRepositoryTestCase(TestCase):

    def setUp(self):
        self.cupom_repository = CupomRepositoryDjango()
        self.repository = PedidoRepositoryDjango(cupom_repo=self.cupom_repository)
        self.item_model = ItemCardapioModel.objects.create(
            nome='Pizza Margherita', preco=Decimal('29.90'), categoria='Pizzas Salgadas',
        )
        self.cupom = self.cupom_repository.salvar(
            Cupom(codigo='PIZZA10', tipo_desconto=TipoDesconto.PERCENTUAL, valor_desconto=Decimal('10'), limite_uso=1)
        )

    def _pedido_com_cupom(self):
        return _pedido(
            self.item_model.id,
            valor_total=Decimal('53.82'),
            cupom_id=self.cupom.id,
            codigo_cupom_aplicado='PIZZA10',
            desconto_cupom_aplicado=Decimal('5.98'),
        )

    def test_criar_pedido_com_itens_e_cupom(self):
        pedido = self.repository.criar_pedido(self._pedido_com_cupom())

        self.assertEqual(pedido.valor_total, Decimal('53.82'))
        self.assertEqual(pedido.codigo_cupom_aplicado, 'PIZZA10')
        self.assertEqual(len(pedido.itens), 1)
        self.assertEqual(pedido.itens[0].observacoes_item, 'Sem cebola')
        self.assertEqual(pedido.itens[0].pedido_id, pedido.id)
        self.assertEqual(CupomModel.objects.get(pk=self.cupom.id).vezes_usado, 1)

    def test_cupom_esgotado_desfaz_o_pedido(self):
        """
        Cenário: o limite do cupom foi atingido. O UPDATE condicional afeta
        zero linhas e nada do pedido é gravado.
        """
        self.repository.criar_pedido(self._pedido_com_cupom())

        with self.assertRaises(CupomEsgotadoError):
            self.repository.criar_pedido(self._pedido_com_cupom())

        self.assertEqual(PedidoModel.objects.count(), 1)
        self.assertEqual(CupomModel.objects.get(pk=self.cupom.id).vezes_usado, 1)

    def test_listar_por_status_e_periodo(self):
        self.repository.criar_pedido(_pedido(self.item_model.id, criado_em=AGORA - timedelta(days=2)))
        self.repository.criar_pedido(_pedido(self.item_model.id, status=StatusPedido.EM_PREPARO))

        self.assertEqual(len(self.repository.listar_todos()), 2)
        self.assertEqual(len(self.repository.listar_todos(StatusPedido.EM_PREPARO)), 1)

        periodo = self.repository.listar_por_periodo(AGORA - timedelta(days=1), AGORA + timedelta(seconds=1))
        self.assertEqual([p.status for p in periodo], [StatusPedido.EM_PREPARO])
        # Fim exclusivo
        self.assertEqual(self.repository.listar_por_periodo(AGORA - timedelta(days=1), AGORA), [])

    def test_salvar_pedido_inexistente(self):
        with self.assertRaises(PedidoNaoEncontradoError):
            self.repository.salvar(_pedido(self.item_model.id))

    def test_entregue_em_nunca_e_apagado(self):
        pedido = self.repository.criar_pedido(
            _pedido(self.item_model.id, status=StatusPedido.ENTREGUE, entregue_em=AGORA)
        )
        pedido.entregue_em = None
        pedido.observacoes = 'Cliente elogiou'

        salvo = self.repository.salvar(pedido)

        self.assertEqual(salvo.entregue_em, AGORA)
        self.assertEqual(salvo.observacoes, 'Cliente elogiou')

    def test_contar_ativos_por_entregador(self):
        entregador = EntregadorModel.objects.create(nome='Carlos Souza')
        self.repository.criar_pedido(
            _pedido(self.item_model.id, status=StatusPedido.SAIU_PARA_ENTREGA, entregador_id=entregador.id)
        )
        self.repository.criar_pedido(
            _pedido(self.item_model.id, status=StatusPedido.ENTREGUE, entregador_id=entregador.id)
        )
        self.assertEqual(self.repository.contar_ativos_por_entregador(entregador.id), 1)


# ====================================================================
# GATEWAYS (sem rede: sessões e requests simulados)
# ====================================================================

COORDENADAS = {
    'Pizzaria': (-23.560, -46.650),
    'Rua A': (-23.560, -46.620),
    'Rua B': (-23.560, -46.640),
    'Rua C': (-23.560, -46.630),
}


def _geoapify_get(url, params=None, timeout=None):
    response = Mock()
    response.raise_for_status.return_value = None
    if url.endswith('geocode/search'):
        coords = COORDENADAS.get(params['text'])
        features = [{'properties': {'lat': coords[0], 'lon': coords[1]}}] if coords else []
        response.json.return_value = {'features': features}
    else:
        response.json.return_value = {'features': [{'properties': {'distance': 1500, 'time': 300}}]}
    return response


class GeoapifyRotaGatewayTest(unittest.TestCase):

    def setUp(self):
        self.session_mock = Mock()
        self.session_mock.get.side_effect = _geoapify_get
        self.gateway = GeoapifyRotaGateway(api_key='chave-teste', timeout=5, session=self.session_mock)

    def test_sem_chave_usa_google_maps(self):
        with self.assertLogs('pizzaflow.infrastructure.gateways', level='WARNING'):
            gateway = GeoapifyRotaGateway(api_key='', session=self.session_mock)

        rota = gateway.descrever_rota('Pizzaria', 'Rua A')
        plano = gateway.planejar_multiplas_paradas('Pizzaria', [ParadaEntrega('p1', 'Rua A')])

        self.assertTrue(rota.url_rota.startswith('https://www.google.com/maps/dir/'))
        self.assertEqual(plano.trechos, [])
        self.assertTrue(plano.resumo.startswith('ERRO'))
        self.session_mock.get.assert_not_called()

    def test_descrever_rota(self):
        rota = self.gateway.descrever_rota('Pizzaria', 'Rua A')

        self.assertIn('route-planner', rota.url_rota)
        self.assertEqual(rota.distancia_metros, 1500)
        self.assertEqual(rota.tempo_segundos, 300)
        _, kwargs = self.session_mock.get.call_args
        self.assertEqual(kwargs['params']['apiKey'], 'chave-teste')
        self.assertEqual(kwargs['timeout'], 5)

    def test_falha_de_rede_degrada_para_busca(self):
        self.session_mock.get.side_effect = requests.exceptions.ConnectionError('sem rede')

        rota = self.gateway.descrever_rota('Pizzaria', 'Rua A')

        self.assertTrue(rota.url_rota.startswith('https://www.google.com/maps/search/'))
        self.assertIsNone(rota.distancia_metros)

    def test_planejar_multiplas_paradas(self):
        paradas = [
            ParadaEntrega('a', 'Rua A'),
            ParadaEntrega('b', 'Rua B'),
            ParadaEntrega('x', 'Rua Desconhecida'),
            ParadaEntrega('c', 'Rua C'),
        ]

        plano = self.gateway.planejar_multiplas_paradas('Pizzaria', paradas)

        # Vizinho mais próximo a partir da pizzaria: B, C, A
        self.assertEqual(plano.trechos[0].pedido_ids, ['b', 'c', 'a'])
        self.assertEqual(plano.trechos[0].distancia_metros, 1500)
        self.assertEqual(plano.trechos[1].pedido_ids, ['x'])
        self.assertIn('google.com/maps/dir', plano.trechos[1].url_mapa)
        self.assertIn('4 pedido(s) em 2 trecho(s)', plano.resumo)
        self.assertIn('1 endereço(s) não localizado(s)', plano.resumo)

    def test_trechos_limitados_a_tres_paradas(self):
        paradas = [ParadaEntrega(str(i), endereco) for i, endereco in enumerate(['Rua A', 'Rua B', 'Rua C', 'Rua A'])]
        plano = self.gateway.planejar_multiplas_paradas('Pizzaria', paradas)
        self.assertEqual([len(t.pedido_ids) for t in plano.trechos], [3, 1])

    def test_resultado_sem_coordenadas_conta_como_nao_localizado(self):
        """
        Cenário: a geocodificação devolve uma feature sem lat/lon para um dos
        endereços. A parada vira um trecho individual em vez de quebrar o plano.
        """
        # ARRANGE
        def get_sem_coordenadas(url, params=None, timeout=None):
            if url.endswith('geocode/search') and params['text'] == 'Rua Sem Numero':
                response = Mock()
                response.raise_for_status.return_value = None
                response.json.return_value = {'features': [{'properties': {'formatted': 'Rua Sem Numero'}}]}
                return response
            return _geoapify_get(url, params, timeout)

        self.session_mock.get.side_effect = get_sem_coordenadas
        paradas = [ParadaEntrega('a', 'Rua A'), ParadaEntrega('s', 'Rua Sem Numero')]

        # ACT
        plano = self.gateway.planejar_multiplas_paradas('Pizzaria', paradas)

        # ASSERT
        self.assertEqual([t.pedido_ids for t in plano.trechos], [['a'], ['s']])
        self.assertIn('1 endereço(s) não localizado(s)', plano.resumo)

        rota = self.gateway.descrever_rota('Pizzaria', 'Rua Sem Numero')
        self.assertTrue(rota.url_rota.startswith('https://www.google.com/maps/search/'))


class BrasilApiCepGatewayTest(unittest.TestCase):

    def setUp(self):
        self.gateway = BrasilApiCepGateway(base_url='https://brasilapi.test/api/', timeout=3)

    @patch('pizzaflow.infrastructure.gateways.requests.get')
    def test_cep_encontrado(self, get_mock):
        get_mock.return_value = Mock(status_code=200)
        get_mock.return_value.json.return_value = {
            'cep': '01310100', 'street': 'Avenida Paulista', 'neighborhood': 'Bela Vista',
            'city': 'São Paulo', 'state': 'SP',
        }

        endereco = self.gateway.buscar_endereco('01310100')

        get_mock.assert_called_once_with('https://brasilapi.test/api/cep/v2/01310100', timeout=3)
        self.assertEqual(endereco.rua, 'Avenida Paulista')
        self.assertEqual(endereco.endereco_completo, 'Avenida Paulista, Bela Vista, São Paulo, SP')

    @patch('pizzaflow.infrastructure.gateways.requests.get')
    def test_cep_inexistente(self, get_mock):
        get_mock.return_value = Mock(status_code=404)
        self.assertIsNone(self.gateway.buscar_endereco('99999999'))

    @patch('pizzaflow.infrastructure.gateways.requests.get')
    def test_erro_de_rede(self, get_mock):
        get_mock.side_effect = requests.exceptions.Timeout('tempo esgotado')
        self.assertIsNone(self.gateway.buscar_endereco('01310100'))


# ====================================================================
# COMANDOS DE GERENCIAMENTO
# ====================================================================

class ComandosTestCase(TestCase):

    def test_carregar_dados_iniciais_e_idempotente(self):
        call_command('carregar_dados_iniciais', stdout=StringIO())
        call_command('carregar_dados_iniciais', stdout=StringIO())

        self.assertEqual(ItemCardapioModel.objects.count(), 8)
        self.assertEqual(CupomModel.objects.count(), 3)
        self.assertEqual(EntregadorModel.objects.count(), 2)

    def test_simular_pedido(self):
        call_command('carregar_dados_iniciais', stdout=StringIO())
        saida = StringIO()

        call_command('simular_pedido', quantidade=2, stdout=saida)

        self.assertEqual(PedidoModel.objects.count(), 2)
        self.assertIn('criado para', saida.getvalue())

    def test_simular_pedido_sem_cardapio(self):
        with self.assertRaises(CommandError):
            call_command('simular_pedido', stdout=StringIO())

import csv
import io
from decimal import Decimal
from unittest.mock import patch

from django.contrib import admin
from django.contrib.auth.models import User
from django.contrib.messages.storage.fallback import FallbackStorage
from django.test import RequestFactory, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from pizzaflow.cardapio.models import ItemCardapio
from pizzaflow.cupons.models import Cupom
from pizzaflow.entregas.models import Entregador
from pizzaflow.pedidos.models import Pedido
from pizzaflow.core.entities import EnderecoCep, StatusPedido, StatusPagamento, TipoDesconto
from pizzaflow.infrastructure.instances import cep_gateway
from pizzaflow.presentation.admin import CupomAdminForm


class PizzaflowAPITestCase(APITestCase):
    """Base: cardápio com dois itens, o cupom PIZZA10 e um usuário staff."""

    def setUp(self):
        self.pizza = ItemCardapio.objects.create(nome='Pizza Margherita', preco=Decimal('29.90'), categoria='Pizzas Salgadas')
        self.bebida = ItemCardapio.objects.create(nome='Refrigerante', preco=Decimal('5.00'), categoria='Bebidas')
        self.cupom = Cupom.objects.create(
            codigo='PIZZA10', tipo_desconto=TipoDesconto.PERCENTUAL, valor_desconto=Decimal('10'),
        )
        self.admin = User.objects.create_user('gerente', 'gerente@pizzaflow.test', 'senha-forte', is_staff=True)

    def dados_pedido(self, **kwargs):
        dados = {
            'nome_cliente': 'Maria Silva',
            'endereco_cliente': 'Rua das Flores, 10',
            'tipo_pagamento': 'Dinheiro',
            'itens': [
                {'item_cardapio_id': self.pizza.id, 'nome': 'Pizza Margherita', 'preco': '29.90', 'quantidade': 2},
                {'item_cardapio_id': self.bebida.id, 'nome': 'Refrigerante', 'preco': '5.00', 'quantidade': 1},
            ],
        }
        dados.update(kwargs)
        return dados

    def criar_pedido(self, **kwargs):
        response = self.client.post(reverse('api_criar_pedido'), self.dados_pedido(**kwargs), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data


# ====================================================================
# ROTAS PÚBLICAS
# ====================================================================

class CardapioPublicoTest(PizzaflowAPITestCase):

    def test_lista_cardapio_ordenado_por_categoria(self):
        response = self.client.get(reverse('api_cardapio'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['nome'] for item in response.data], ['Refrigerante', 'Pizza Margherita'])
        self.assertEqual(response.data[1]['preco'], '29.90')


class CriarPedidoAPITest(PizzaflowAPITestCase):

    def test_cria_pedido_com_cupom(self):
        """
        Cenário: 2x 29.90 + 1x 5.00 com PIZZA10. Subtotal 64.80,
        desconto 6.48 e total 58.32 congelados no pedido.
        """
        # ACT
        dados = self.criar_pedido(codigo_cupom='PIZZA10')

        # ASSERT
        self.assertEqual(dados['valor_total'], '58.32')
        self.assertEqual(dados['desconto_cupom_aplicado'], '6.48')
        self.assertEqual(dados['codigo_cupom_aplicado'], 'PIZZA10')
        self.assertEqual(dados['status'], StatusPedido.PENDENTE)
        self.assertEqual(Cupom.objects.get(pk=self.cupom.id).vezes_usado, 1)
        self.assertEqual(Pedido.objects.get(pk=dados['id']).itens.count(), 2)

    def test_cupom_invalido_nao_impede_o_pedido(self):
        dados = self.criar_pedido(codigo_cupom='pizza10')

        self.assertEqual(dados['valor_total'], '64.80')
        self.assertIsNone(dados['codigo_cupom_aplicado'])
        self.assertEqual(Cupom.objects.get(pk=self.cupom.id).vezes_usado, 0)

    def test_pagamento_online_entra_como_pago(self):
        dados = self.criar_pedido(tipo_pagamento='Online')
        self.assertEqual(Pedido.objects.get(pk=dados['id']).status_pagamento, StatusPagamento.PAGO)

    def test_endereco_estruturado(self):
        dados = self.criar_pedido(
            endereco_cliente='', rua='Avenida Paulista', numero='1000', bairro='Bela Vista',
            cidade='São Paulo', estado='SP', cep='01310-100',
        )
        pedido = Pedido.objects.get(pk=dados['id'])
        self.assertIn('Avenida Paulista', pedido.endereco_cliente)
        self.assertEqual(pedido.cep_cliente, '01310-100')

    def test_pedido_sem_itens(self):
        response = self.client.post(reverse('api_criar_pedido'), self.dados_pedido(itens=[]), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('itens', response.data)
        self.assertEqual(Pedido.objects.count(), 0)

    def test_pedido_sem_endereco(self):
        response = self.client.post(reverse('api_criar_pedido'), self.dados_pedido(endereco_cliente=''), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('endereço', response.data['message'])

    def test_pagina_de_acompanhamento(self):
        dados = self.criar_pedido()

        response = self.client.get(reverse('api_status_pedido', args=[dados['id']]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id_exibicao'], dados['id_exibicao'])
        self.assertNotIn('endereco_cliente', response.data)

    def test_pedido_inexistente(self):
        response = self.client.get(reverse('api_status_pedido', args=['nao-existe']))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ValidarCupomAPITest(PizzaflowAPITestCase):

    def test_cupom_valido(self):
        response = self.client.post(
            reverse('api_validar_cupom'), {'codigo': 'PIZZA10', 'subtotal': '64.80'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['valido'])
        self.assertEqual(response.data['valor_desconto'], '6.48')
        self.assertEqual(response.data['total'], '58.32')
        self.assertNotIn('vezes_usado', response.data['cupom'])

    def test_cupom_abaixo_do_minimo(self):
        Cupom.objects.create(
            codigo='FRETEGRATIS', tipo_desconto=TipoDesconto.VALOR_FIXO,
            valor_desconto=Decimal('8.00'), valor_minimo_pedido=Decimal('60.00'),
        )

        response = self.client.post(
            reverse('api_validar_cupom'), {'codigo': 'FRETEGRATIS', 'subtotal': '59.99'}, format='json'
        )

        self.assertEqual(response.data, {'valido': False, 'motivo': 'ABAIXO_DO_MINIMO'})

    def test_cupom_inexistente(self):
        response = self.client.post(reverse('api_validar_cupom'), {'codigo': 'NADA', 'subtotal': '10'}, format='json')
        self.assertEqual(response.data['motivo'], 'NAO_ENCONTRADO')


class BuscarCepAPITest(APITestCase):

    def test_cep_encontrado(self):
        endereco = EnderecoCep(cep='01310100', rua='Avenida Paulista', bairro='Bela Vista', cidade='São Paulo', estado='SP')
        with patch.object(cep_gateway, 'buscar_endereco', return_value=endereco) as buscar_mock:
            response = self.client.get(reverse('api_buscar_cep', args=['01310-100']))

        buscar_mock.assert_called_once_with('01310100')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['endereco_completo'], 'Avenida Paulista, Bela Vista, São Paulo, SP')

    def test_cep_invalido_nao_consulta_o_servico(self):
        with patch.object(cep_gateway, 'buscar_endereco') as buscar_mock:
            response = self.client.get(reverse('api_buscar_cep', args=['123']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        buscar_mock.assert_not_called()


# ====================================================================
# ROTAS ADMINISTRATIVAS
# ====================================================================

class PermissoesAdminTest(PizzaflowAPITestCase):

    def test_anonimo_precisa_autenticar(self):
        response = self.client.get(reverse('admin_pedidos'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_usuario_comum_nao_acessa(self):
        cliente = User.objects.create_user('cliente', 'cliente@pizzaflow.test', 'senha-forte')
        self.client.force_authenticate(user=cliente)

        response = self.client.get(reverse('admin_pedidos'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_token_jwt_da_acesso_ao_painel(self):
        response = self.client.post(reverse('token_obtain_pair'), {'username': 'gerente', 'password': 'senha-forte'})
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

        self.assertEqual(self.client.get(reverse('admin_pedidos')).status_code, status.HTTP_200_OK)


class PedidosAdminTest(PizzaflowAPITestCase):

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.admin)
        self.pedido = self.criar_pedido()

    def transicionar(self, **dados):
        return self.client.post(reverse('admin_transicao_pedido', args=[self.pedido['id']]), dados, format='json')

    def test_fluxo_completo_por_eventos(self):
        entregador = Entregador.objects.create(nome='Carlos Souza')

        self.assertEqual(self.transicionar(evento='aceitar').data['status'], StatusPedido.EM_PREPARO)
        self.assertEqual(self.transicionar(evento='marcar_pronto').data['status'], StatusPedido.AGUARDANDO_RETIRADA)
        despachado = self.transicionar(evento='despachar', entregador_id=entregador.id).data
        self.assertEqual(despachado['entregador'], 'Carlos Souza')
        entregue = self.transicionar(evento='marcar_entregue').data

        self.assertEqual(entregue['status'], StatusPedido.ENTREGUE)
        self.assertIsNotNone(entregue['entregue_em'])

    def test_transicao_por_status_de_destino(self):
        response = self.transicionar(status=StatusPedido.EM_PREPARO)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], StatusPedido.EM_PREPARO)

    def test_transicao_invalida_retorna_conflito(self):
        """
        Cenário: pular de Pendente direto para Entregue não é permitido.
        """
        response = self.transicionar(evento='marcar_entregue')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Pedido.objects.get(pk=self.pedido['id']).status, StatusPedido.PENDENTE)

    def test_evento_e_status_juntos(self):
        response = self.transicionar(evento='aceitar', status=StatusPedido.EM_PREPARO)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filtro_de_status_invalido(self):
        response = self.client.get(reverse('admin_pedidos'), {'status': 'Voando'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_editar_e_registrar_pagamento(self):
        url = reverse('admin_pedido', args=[self.pedido['id']])
        response = self.client.patch(url, {'observacoes': 'Tocar o interfone'}, format='json')
        self.assertEqual(response.data['observacoes'], 'Tocar o interfone')

        response = self.client.post(
            reverse('admin_pagamento_pedido', args=[self.pedido['id']]), {'tipo_pagamento': 'Cartao'}, format='json'
        )
        self.assertEqual(response.data['status_pagamento'], StatusPagamento.PAGO)
        self.assertEqual(response.data['tipo_pagamento'], 'Cartao')

    def test_configuracao_de_status(self):
        response = self.client.get(reverse('admin_status_config'))

        pendente = next(s for s in response.data if s['status'] == StatusPedido.PENDENTE)
        entregue = next(s for s in response.data if s['status'] == StatusPedido.ENTREGUE)
        self.assertEqual(set(pendente['eventos']), {'aceitar', 'cancelar'})
        self.assertEqual(entregue['eventos'], [])

    def test_despachar_multiplos_sem_entregador(self):
        plano = {'trechos': [{'pedido_ids': [self.pedido['id']], 'descricao': 'Rua das Flores', 'url_mapa': 'https://maps'}]}

        response = self.client.post(reverse('admin_despachar'), {'plano': plano}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_despachar_multiplos_com_falha_parcial(self):
        pronto = self.criar_pedido(nome_cliente='João Lima')
        Pedido.objects.filter(pk=pronto['id']).update(status=StatusPedido.AGUARDANDO_RETIRADA)
        plano = {
            'trechos': [{'pedido_ids': [pronto['id'], self.pedido['id']], 'descricao': 'Trecho 1', 'url_mapa': 'https://maps'}],
            'resumo': '2 pedido(s) em 1 trecho(s).',
        }

        response = self.client.post(
            reverse('admin_despachar'), {'plano': plano, 'nome_entregador': 'Ana Lima'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data['sucessos']], [pronto['id']])
        self.assertEqual([f['pedido_id'] for f in response.data['falhas']], [self.pedido['id']])
        self.assertEqual(Pedido.objects.get(pk=pronto['id']).status, StatusPedido.SAIU_PARA_ENTREGA)


class CadastrosAdminTest(PizzaflowAPITestCase):

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.admin)

    def test_item_vendido_nao_pode_ser_excluido(self):
        self.criar_pedido()

        response = self.client.delete(reverse('admin_item_cardapio', args=[self.pizza.id]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['referencias'], 1)
        self.assertTrue(ItemCardapio.objects.filter(pk=self.pizza.id).exists())

    def test_criar_e_excluir_item(self):
        response = self.client.post(
            reverse('admin_cardapio'), {'nome': 'Pizza Doce', 'preco': '39.90', 'categoria': 'Pizzas Doces'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.delete(reverse('admin_item_cardapio', args=[response.data['id']]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_cupom_com_codigo_duplicado(self):
        response = self.client.post(
            reverse('admin_cupons'),
            {'codigo': 'PIZZA10', 'tipo_desconto': TipoDesconto.VALOR_FIXO, 'valor_desconto': '5.00'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_contador_de_uso_nao_e_editavel(self):
        response = self.client.patch(
            reverse('admin_cupom', args=[self.cupom.id]), {'vezes_usado': 50, 'ativo': False}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['ativo'])
        self.assertEqual(response.data['vezes_usado'], 0)

    def test_entregadores_ativos(self):
        Entregador.objects.create(nome='Carlos Souza')
        Entregador.objects.create(nome='Ana Lima', ativo=False)

        response = self.client.get(reverse('admin_entregadores'), {'ativos': '1'})

        self.assertEqual([e['nome'] for e in response.data], ['Carlos Souza'])


class DashboardEExportacaoTest(PizzaflowAPITestCase):

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.admin)

    def test_dashboard_sem_periodo(self):
        self.criar_pedido(tipo_pagamento='Online')
        self.criar_pedido()

        response = self.client.get(reverse('admin_dashboard'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_pedidos'], 2)
        # Só pedidos pagos contam como receita
        self.assertEqual(response.data['receita_total'], '64.80')
        self.assertEqual(len(response.data['receita_diaria']), 7)

    def test_dashboard_com_periodo_incompleto(self):
        response = self.client.get(reverse('admin_dashboard'), {'inicio': '2025-03-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_exportar_csv(self):
        self.criar_pedido()

        response = self.client.get(reverse('admin_exportar_csv'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn('attachment; filename="pedidos_', response['Content-Disposition'])
        linhas = list(csv.reader(io.StringIO(response.content.decode('utf-8'))))
        self.assertEqual(linhas[0][:3], ['ID Pedido', 'Código', 'Cliente'])
        self.assertEqual(len(linhas), 2)
        self.assertEqual(linhas[1][2], 'Maria Silva')


# ====================================================================
# ADMIN DO DJANGO
# ====================================================================

class EntregadorDjangoAdminTest(TestCase):

    def setUp(self):
        self.superusuario = User.objects.create_superuser('dono', 'dono@pizzaflow.test', 'senha-forte')
        self.model_admin = admin.site._registry[Entregador]

        self.ocupado = Entregador.objects.create(nome='Carlos Souza')
        self.livre = Entregador.objects.create(nome='Ana Lima')
        self.pedido = Pedido.objects.create(
            nome_cliente='Maria Silva',
            endereco_cliente='Rua das Flores, 10',
            valor_total=Decimal('64.80'),
            status=StatusPedido.SAIU_PARA_ENTREGA,
            entregador='Carlos Souza',
            entregador_cadastro=self.ocupado,
        )

    def requisicao(self):
        request = RequestFactory().post('/admin/entregas/entregador/')
        request.user = self.superusuario
        setattr(request, 'session', 'session')
        setattr(request, '_messages', FallbackStorage(request))
        return request

    def test_permissao_de_exclusao_depende_de_pedido_em_andamento(self):
        request = self.requisicao()

        self.assertFalse(self.model_admin.has_delete_permission(request, self.ocupado))
        self.assertTrue(self.model_admin.has_delete_permission(request, self.livre))
        self.assertTrue(self.model_admin.has_delete_permission(request))

    def test_pedido_finalizado_nao_bloqueia_exclusao(self):
        Pedido.objects.filter(pk=self.pedido.pk).update(status=StatusPedido.ENTREGUE)

        self.assertTrue(self.model_admin.has_delete_permission(self.requisicao(), self.ocupado))

    def test_exclusao_em_massa_preserva_entregador_ocupado(self):
        """
        Cenário: ação de exclusão com os dois entregadores selecionados.
        Só o entregador livre sai; o pedido na rua mantém o vínculo.
        """
        # ARRANGE
        request = self.requisicao()

        # ACT
        self.model_admin.delete_queryset(request, Entregador.objects.all())

        # ASSERT
        self.assertEqual(list(Entregador.objects.values_list('nome', flat=True)), ['Carlos Souza'])
        self.pedido.refresh_from_db()
        self.assertEqual(self.pedido.entregador_cadastro_id, self.ocupado.id)
        mensagens = [str(m) for m in request._messages]
        self.assertEqual(len(mensagens), 1)
        self.assertIn('Carlos Souza', mensagens[0])

    def test_exclusao_individual_de_entregador_ocupado(self):
        request = self.requisicao()

        self.model_admin.delete_model(request, self.ocupado)

        self.assertTrue(Entregador.objects.filter(pk=self.ocupado.pk).exists())
        self.pedido.refresh_from_db()
        self.assertEqual(self.pedido.entregador_cadastro_id, self.ocupado.id)

    def test_exclusao_individual_de_entregador_livre(self):
        self.model_admin.delete_model(self.requisicao(), self.livre)

        self.assertFalse(Entregador.objects.filter(pk=self.livre.pk).exists())


class CupomAdminFormTest(TestCase):

    def dados(self, **kwargs):
        dados = {
            'codigo': 'PIZZA10',
            'tipo_desconto': TipoDesconto.PERCENTUAL,
            'valor_desconto': '10',
            'ativo': True,
        }
        dados.update(kwargs)
        return dados

    def test_cupom_valido(self):
        form = CupomAdminForm(data=self.dados(limite_uso=100, valor_minimo_pedido='30.00'))

        self.assertTrue(form.is_valid(), form.errors)
        cupom = form.save()
        self.assertEqual(cupom.vezes_usado, 0)

    def test_regras_de_cadastro(self):
        casos = {
            'percentual acima de 100': self.dados(valor_desconto='150'),
            'desconto negativo': self.dados(tipo_desconto=TipoDesconto.VALOR_FIXO, valor_desconto='-5.00'),
            'código com espaço': self.dados(codigo='PIZZA 10'),
            'mínimo negativo': self.dados(valor_minimo_pedido='-1.00'),
        }
        for nome, dados in casos.items():
            with self.subTest(nome):
                form = CupomAdminForm(data=dados)
                self.assertFalse(form.is_valid())
                self.assertTrue(form.non_field_errors())

    def test_limite_menor_que_usos_registrados(self):
        """
        Cenário: cupom já usado 5 vezes tem o limite reduzido para 3 pelo admin.
        O formulário recusa; o cupom continua como estava.
        """
        # ARRANGE
        cupom = Cupom.objects.create(
            codigo='PIZZA10', tipo_desconto=TipoDesconto.PERCENTUAL, valor_desconto=Decimal('10'),
            limite_uso=10, vezes_usado=5,
        )

        # ACT
        form = CupomAdminForm(data=self.dados(limite_uso=3), instance=cupom)

        # ASSERT
        self.assertFalse(form.is_valid())
        self.assertIn('usos já registrados', form.non_field_errors()[0])
        cupom.refresh_from_db()
        self.assertEqual(cupom.limite_uso, 10)

    def test_percentual_de_100_e_aceito(self):
        form = CupomAdminForm(data=self.dados(valor_desconto='100'))

        self.assertTrue(form.is_valid(), form.errors)

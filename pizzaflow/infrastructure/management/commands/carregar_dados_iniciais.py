from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from pizzaflow.cardapio.models import ItemCardapio
from pizzaflow.cupons.models import Cupom
from pizzaflow.entregas.models import Entregador
from pizzaflow.core.entities import TipoDesconto


CARDAPIO = {
    'Pizzas Salgadas': [
        ('Pizza Margherita', 'Molho de tomate fresco, mussarela e manjericão.', Decimal('45.90'), 'pizza margherita'),
        ('Pizza Calabresa', 'Calabresa fatiada, cebola e azeitonas.', Decimal('42.90'), 'pizza calabresa'),
        ('Pizza Quatro Queijos', 'Mussarela, provolone, parmesão e gorgonzola.', Decimal('49.90'), 'pizza cheese'),
        ('Pizza Portuguesa', 'Presunto, ovos, cebola, ervilha e mussarela.', Decimal('47.90'), 'pizza portuguesa'),
    ],
    'Pizzas Doces': [
        ('Pizza de Chocolate', 'Chocolate ao leite com granulado.', Decimal('39.90'), 'chocolate pizza'),
        ('Pizza Romeu e Julieta', 'Goiabada cremosa com mussarela.', Decimal('38.90'), 'guava pizza'),
    ],
    'Bebidas': [
        ('Refrigerante Lata', 'Lata 350ml.', Decimal('6.00'), 'soda can'),
        ('Suco Natural', 'Laranja ou limão, 500ml.', Decimal('9.50'), 'orange juice'),
    ],
}

CUPONS = [
    {
        'codigo': 'PIZZA10',
        'descricao': '10% de desconto em todo o pedido',
        'tipo_desconto': TipoDesconto.PERCENTUAL,
        'valor_desconto': Decimal('10'),
    },
    {
        'codigo': 'FRETEGRATIS',
        'descricao': 'R$ 8,00 de desconto em pedidos acima de R$ 60,00',
        'tipo_desconto': TipoDesconto.VALOR_FIXO,
        'valor_desconto': Decimal('8.00'),
        'valor_minimo_pedido': Decimal('60.00'),
    },
    {
        'codigo': 'PRIMEIRACOMPRA',
        'descricao': 'R$ 15,00 de desconto, limitado aos 100 primeiros pedidos',
        'tipo_desconto': TipoDesconto.VALOR_FIXO,
        'valor_desconto': Decimal('15.00'),
        'limite_uso': 100,
    },
]

ENTREGADORES = [
    ('Carlos Souza', 'Moto Honda CG 160', 'ABC1D23'),
    ('Ana Lima', 'Moto Yamaha Factor', 'XYZ9K87'),
]


class Command(BaseCommand):
    help = 'Carrega cardápio, cupons e entregadores iniciais'

    @transaction.atomic
    def handle(self, *args, **kwargs):
        self.stdout.write('Criando dados iniciais...')

        for categoria, itens in CARDAPIO.items():
            for nome, descricao, preco, dica in itens:
                _, created = ItemCardapio.objects.get_or_create(
                    nome=nome,
                    defaults={
                        'categoria': categoria,
                        'descricao': descricao,
                        'preco': preco,
                        'dica_ia': dica,
                        'url_imagem': f'https://placehold.co/600x400.png?text={nome.replace(" ", "+")}',
                    },
                )
                if created:
                    self.stdout.write(self.style.SUCCESS(f'Criado item "{nome}"'))

        for dados in CUPONS:
            codigo = dados['codigo']
            _, created = Cupom.objects.get_or_create(
                codigo=codigo,
                defaults={k: v for k, v in dados.items() if k != 'codigo'},
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'Criado cupom "{codigo}"'))

        for nome, veiculo, placa in ENTREGADORES:
            _, created = Entregador.objects.get_or_create(
                nome=nome, defaults={'detalhes_veiculo': veiculo, 'placa': placa},
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'Criado entregador "{nome}"'))

        self.stdout.write(self.style.SUCCESS('Dados iniciais carregados com sucesso!'))

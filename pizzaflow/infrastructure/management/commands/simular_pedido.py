from django.core.management.base import BaseCommand, CommandError

from pizzaflow.core.dependency_injection import get_simular_pedido_use_case
from pizzaflow.core.exceptions import BaseErroCore


class Command(BaseCommand):
    help = 'Cria pedido(s) simulado(s) passando pelo fluxo normal de criação'

    def add_arguments(self, parser):
        parser.add_argument('--quantidade', type=int, default=1)

    def handle(self, *args, **options):
        simular = get_simular_pedido_use_case()
        for _ in range(options['quantidade']):
            try:
                pedido = simular.executar()
            except BaseErroCore as e:
                raise CommandError(str(e))
            cupom = f" com cupom {pedido.codigo_cupom_aplicado}" if pedido.codigo_cupom_aplicado else ""
            self.stdout.write(self.style.SUCCESS(
                f'Pedido {pedido.id_exibicao} criado para {pedido.nome_cliente}: R$ {pedido.valor_total}{cupom}'
            ))

"""
Management command para aguardar o banco de dados estar disponível.
"""
import time
from django.db import connections
from django.db.utils import OperationalError
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    """Pausa a execução até o banco de dados aceitar conexões (subida de containers)."""
    help = 'Aguarda o banco de dados ficar disponível'

    def add_arguments(self, parser):
        parser.add_argument('--intervalo', type=float, default=1.0, help='Segundos entre tentativas')
        parser.add_argument('--tentativas', type=int, default=60, help='Número máximo de tentativas')

    def handle(self, *args, **options):
        self.stdout.write('Aguardando pelo banco de dados...')
        conexao = connections['default']
        for tentativa in range(1, options['tentativas'] + 1):
            try:
                conexao.ensure_connection()
                break
            except OperationalError:
                self.stdout.write(
                    f"Banco de dados indisponível (tentativa {tentativa}), aguardando {options['intervalo']} segundo(s)..."
                )
                time.sleep(options['intervalo'])
        else:
            raise OperationalError('Banco de dados não ficou disponível a tempo.')

        self.stdout.write(self.style.SUCCESS('Banco de dados disponível!'))

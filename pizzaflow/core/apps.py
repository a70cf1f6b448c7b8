# pizzaflow/core/apps.py

from django.apps import AppConfig

class CoreConfig(AppConfig):
    # O nome completo do path da aplicação
    name = 'pizzaflow.core'
    # Label curto, usado pelos management commands (ex: aguardar_banco)
    label = 'core'
    verbose_name = 'Regras de Negócio (Core)'

    # Sem modelos: a persistência fica nos apps de domínio e na Infrastructure.
    default_auto_field = 'django.db.models.BigAutoField'

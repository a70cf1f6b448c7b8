from django.apps import AppConfig


class EntregasConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pizzaflow.entregas'
    label = 'entregas'
    verbose_name = 'Entregadores'

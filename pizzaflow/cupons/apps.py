from django.apps import AppConfig


class CuponsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pizzaflow.cupons'
    label = 'cupons'
    verbose_name = 'Cupons de Desconto'

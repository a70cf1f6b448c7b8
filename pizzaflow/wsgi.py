"""
WSGI config for the PizzaFlow project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pizzaflow.settings')

application = get_wsgi_application()

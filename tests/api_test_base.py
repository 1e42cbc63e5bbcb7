import os
import sys
import unittest

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# In-memory database; must be set before the app module is imported
os.environ['DATABASE_URI'] = 'sqlite://'

from app import app
from database.models import db
from utils.cache import EXTENSION_KEY

TEST_PIN = '4711'


class ApiTestCase(unittest.TestCase):
    """Fresh schema per test and a test client logged in with TEST_PIN."""

    login_on_setup = True

    def setUp(self):
        app.config['TESTING'] = True
        with app.app_context():
            db.create_all()
        app.extensions[EXTENSION_KEY].invalidate()

        self.client = app.test_client()
        if self.login_on_setup:
            response = self.client.post('/api/auth/setup', json={'pin': TEST_PIN})
            self.assertEqual(response.status_code, 201)

    def tearDown(self):
        with app.app_context():
            db.session.remove()
            db.drop_all()

    @property
    def cache(self):
        return app.extensions[EXTENSION_KEY]

    def create_recipe(self, **overrides):
        payload = {
            'title': 'Pfannkuchen',
            'instructions': 'Alles verrühren und ausbacken.',
            'servings': 4,
            'ingredients': [
                {'name': 'Mehl', 'amount': '200', 'unit': 'g'},
                {'name': 'Milch', 'amount': '1/2', 'unit': 'l'},
                {'name': 'Salz', 'amount': None, 'unit': None},
            ],
        }
        payload.update(overrides)
        response = self.client.post('/api/recipes', json=payload)
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()

    def create_tag(self, name, color='green'):
        response = self.client.post('/api/tags', json={'name': name, 'color': color})
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()

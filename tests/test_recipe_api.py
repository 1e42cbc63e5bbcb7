import unittest
from unittest.mock import patch

from api_test_base import ApiTestCase, app

import ai_engine
from database.models import db, Recipe, RecipeIngredient


class TestRecipeCrud(ApiTestCase):
    def test_create_and_fetch(self):
        created = self.create_recipe()
        self.assertEqual(created['title'], 'Pfannkuchen')
        self.assertEqual([i['name'] for i in created['ingredients']], ['Mehl', 'Milch', 'Salz'])

        response = self.client.get(f"/api/recipes/{created['id']}")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['servings'], 4)
        self.assertIn('<p>', data['instructions_html'])
        self.assertNotIn('display_servings', data)

    def test_servings_default_to_four(self):
        created = self.create_recipe(servings=None)
        self.assertEqual(created['servings'], 4)

    def test_nameless_ingredient_rows_are_dropped(self):
        created = self.create_recipe(ingredients=[
            {'name': 'Mehl', 'amount': '200', 'unit': 'g'},
            {'name': '  ', 'amount': '1', 'unit': 'EL'},
        ])
        self.assertEqual(len(created['ingredients']), 1)

    def test_validation_errors(self):
        cases = [
            ({'title': ''}, 'Titel ist erforderlich'),
            ({'instructions': ' '}, 'Anleitung ist erforderlich'),
            ({'ingredients': [{'name': '', 'amount': '1'}]}, 'Mindestens eine Zutat ist erforderlich'),
            ({'ingredients': [{'name': 'Mehl', 'amount': '1//2'}]}, 'Ungültige Mengenangabe'),
            ({'servings': 0}, 'Portionen'),
        ]
        base = {
            'title': 'Suppe',
            'instructions': 'Kochen',
            'ingredients': [{'name': 'Wasser', 'amount': '1', 'unit': 'l'}],
        }
        for override, message in cases:
            with self.subTest(message=message):
                payload = dict(base, **override)
                response = self.client.post('/api/recipes', json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertIn(message, response.get_json()['error'])

    def test_comma_decimal_amount_is_accepted(self):
        created = self.create_recipe(ingredients=[{'name': 'Butter', 'amount': '2,5', 'unit': 'EL'}])
        self.assertEqual(created['ingredients'][0]['amount'], '2,5')

    def test_update_replaces_ingredients_and_tags(self):
        tag = self.create_tag('Vegetarisch')
        created = self.create_recipe(tag_ids=[tag['id']])
        self.assertEqual([t['name'] for t in created['tags']], ['Vegetarisch'])

        response = self.client.put(f"/api/recipes/{created['id']}", json={
            'title': 'Crêpes',
            'instructions': 'Dünn ausbacken.',
            'servings': 2,
            'ingredients': [{'name': 'Eier', 'amount': '2', 'unit': None}],
            'tag_ids': [],
        })
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['title'], 'Crêpes')
        self.assertEqual(data['tags'], [])
        self.assertEqual([i['name'] for i in data['ingredients']], ['Eier'])

        with app.app_context():
            count = db.session.execute(
                db.select(db.func.count()).select_from(RecipeIngredient)
            ).scalar()
        self.assertEqual(count, 1)

    def test_unknown_recipe(self):
        self.assertEqual(self.client.get('/api/recipes/nope').status_code, 404)
        self.assertEqual(self.client.delete('/api/recipes/nope').status_code, 404)
        response = self.client.put('/api/recipes/nope', json={'title': 'x'})
        self.assertEqual(response.status_code, 404)

    def test_delete(self):
        created = self.create_recipe()
        response = self.client.delete(f"/api/recipes/{created['id']}")
        self.assertEqual(response.status_code, 200)
        with app.app_context():
            self.assertIsNone(db.session.get(Recipe, created['id']))


class TestRecipeList(ApiTestCase):
    def test_search_and_tag_filter(self):
        veggie = self.create_tag('Vegetarisch')
        quick = self.create_tag('Schnell', color='blue')
        self.create_recipe(title='Tomatensuppe', tag_ids=[veggie['id'], quick['id']])
        self.create_recipe(title='Gulaschsuppe', tag_ids=[quick['id']])
        self.create_recipe(title='Apfelkuchen')

        titles = lambda url: sorted(r['title'] for r in self.client.get(url).get_json()['recipes'])

        self.assertEqual(len(titles('/api/recipes')), 3)
        self.assertEqual(titles('/api/recipes?q=SUPPE'), ['Gulaschsuppe', 'Tomatensuppe'])
        self.assertEqual(titles(f"/api/recipes?tags={quick['id']}"), ['Gulaschsuppe', 'Tomatensuppe'])
        self.assertEqual(titles(f"/api/recipes?tags={quick['id']},{veggie['id']}"), ['Tomatensuppe'])
        self.assertEqual(titles(f"/api/recipes?q=gulasch&tags={veggie['id']}"), [])

    def test_newest_first(self):
        self.create_recipe(title='Erstes')
        self.create_recipe(title='Zweites')
        recipes = self.client.get('/api/recipes').get_json()['recipes']
        self.assertEqual(recipes[0]['title'], 'Zweites')

    def test_list_is_cached_until_a_write(self):
        self.create_recipe(title='Erstes')
        self.client.get('/api/recipes')
        self.assertIsNotNone(self.cache.get(self.cache.make_key('', [])))

        # A row written behind the API's back is not seen while the cache holds
        with app.app_context():
            db.session.add(Recipe(title='Heimlich', instructions='-', servings=1))
            db.session.commit()
        self.assertEqual(len(self.client.get('/api/recipes').get_json()['recipes']), 1)

        self.create_recipe(title='Zweites')
        self.assertIsNone(self.cache.get(self.cache.make_key('', [])))
        self.assertEqual(len(self.client.get('/api/recipes').get_json()['recipes']), 3)


class TestServings(ApiTestCase):
    def test_scaled_detail_view_does_not_persist(self):
        created = self.create_recipe()
        data = self.client.get(f"/api/recipes/{created['id']}?servings=8").get_json()
        self.assertEqual(data['display_servings'], 8)
        self.assertEqual([i['scaled_amount'] for i in data['ingredients']], ['400', '1', None])
        self.assertEqual(data['ingredients'][0]['amount'], '200')

    def test_rescale_persists_amounts(self):
        created = self.create_recipe(ingredients=[
            {'name': 'Mehl', 'amount': '200', 'unit': 'g'},
            {'name': 'Milch', 'amount': '1 1/2', 'unit': 'l'},
            {'name': 'Zucker', 'amount': '1', 'unit': 'EL'},
        ])
        # Backups may carry free-text amounts the form would reject
        with app.app_context():
            recipe = db.session.get(Recipe, created['id'])
            recipe.ingredients[2].amount = 'etwas'
            db.session.commit()

        response = self.client.post(f"/api/recipes/{created['id']}/servings", json={'servings': 2})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['servings'], 2)
        self.assertEqual([i['amount'] for i in data['ingredients']], ['100', '0.75', 'etwas'])

    def test_rescale_rejects_bad_servings(self):
        created = self.create_recipe()
        for value in [0, -2, 'viele', None, 1.5]:
            with self.subTest(value=value):
                response = self.client.post(f"/api/recipes/{created['id']}/servings", json={'servings': value})
                self.assertEqual(response.status_code, 400)

    def test_ingredients_text(self):
        created = self.create_recipe()
        response = self.client.get(f"/api/recipes/{created['id']}/ingredients.txt?servings=8&exclude=2")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.mimetype.startswith('text/plain'))
        self.assertEqual(response.get_data(as_text=True), "400 g Mehl\n1 l Milch")


class TestDraftHelpers(ApiTestCase):
    @patch('ai_engine.refine_recipe')
    def test_refine_returns_draft_and_changes(self, mock_refine):
        mock_refine.return_value = {
            'title': 'Pfannkuchen',
            'servings': 2,
            'instructions': 'Alles verrühren und ausbacken.',
            'ingredients': [
                {'name': 'Weizenmehl', 'amount': '100', 'unit': 'g'},
                {'name': 'Milch', 'amount': '0.25', 'unit': 'l'},
            ],
        }
        draft = {
            'title': 'Pfannkuchen',
            'servings': '4',
            'instructions': 'Alles verrühren und ausbacken.',
            'ingredients': [
                {'name': 'Mehl', 'amount': 200, 'unit': 'g'},
                {'name': 'Milch', 'amount': '1/2', 'unit': 'l'},
            ],
            'source_url': 'https://example.org/pfannkuchen',
        }

        response = self.client.post('/api/recipes/refine', json={'recipe': draft, 'instruction': 'Für 2 Personen'})

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body['data']['source_url'], 'https://example.org/pfannkuchen')
        self.assertEqual(body['changes'], {
            'title': False,
            'servings': True,
            'instructions': False,
            'ingredients': {'0': ['amount', 'name', 'unit'], '1': ['amount']},
        })
        self.assertEqual(mock_refine.call_args.args[1], 'Für 2 Personen')

    def test_refine_requires_instruction(self):
        response = self.client.post('/api/recipes/refine', json={'recipe': {'title': 'x'}, 'instruction': ' '})
        self.assertEqual(response.status_code, 400)

    @patch('ai_engine.refine_recipe')
    def test_refine_extraction_failure(self, mock_refine):
        mock_refine.side_effect = ai_engine.RecipeExtractionError("Missing or invalid title")
        response = self.client.post('/api/recipes/refine', json={'recipe': {'title': 'x'}, 'instruction': 'mach'})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.get_json()['code'], 'EXTRACTION_FAILED')

    def test_changes_endpoint(self):
        original = {'title': 'A', 'servings': 2, 'instructions': 'x', 'ingredients': [{'name': 'Ei', 'amount': '1'}]}
        refined = dict(original, title='B')
        response = self.client.post('/api/recipes/changes', json={'original': original, 'refined': refined})
        self.assertEqual(response.get_json()['changes']['title'], True)
        self.assertEqual(response.get_json()['changes']['ingredients'], {})

    @patch('services.photographer_service.generate_recipe_image')
    def test_generate_image(self, mock_generate):
        mock_generate.return_value = 'data:image/jpeg;base64,AAAA'
        response = self.client.post('/api/generate-image', json={
            'title': 'Pfannkuchen',
            'ingredients': [{'name': 'Mehl'}, 'Milch', {'name': ''}],
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['image_data'], 'data:image/jpeg;base64,AAAA')
        self.assertEqual(mock_generate.call_args.args[1], ['Mehl', 'Milch'])

    def test_generate_image_requires_title(self):
        response = self.client.post('/api/generate-image', json={'title': ''})
        self.assertEqual(response.status_code, 400)


class TestMalformedBodies(ApiTestCase):
    def test_non_object_bodies_are_rejected(self):
        created = self.create_recipe()
        urls = [
            '/api/recipes',
            f"/api/recipes/{created['id']}/servings",
            '/api/recipes/refine',
            '/api/recipes/changes',
            '/api/generate-image',
        ]
        for url in urls:
            for body in ([1], "Suppe", 42):
                with self.subTest(url=url, body=body):
                    response = self.client.post(url, json=body)
                    self.assertEqual(response.status_code, 400)
                    self.assertEqual(response.get_json()['error'], 'Ungültige Anfrage')

    def test_update_with_list_body(self):
        created = self.create_recipe()
        response = self.client.put(f"/api/recipes/{created['id']}", json=[created])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'Ungültige Anfrage')

    def test_oversized_amount_is_a_validation_error(self):
        for amount in ["9" * 5000, "1/" + "3" * 400, "\uff12\uff10\uff10"]:
            with self.subTest(amount=amount[:20]):
                response = self.client.post('/api/recipes', json={
                    'title': 'Suppe',
                    'instructions': 'Kochen',
                    'ingredients': [{'name': 'Wasser', 'amount': amount}],
                })
                self.assertEqual(response.status_code, 400)
                self.assertIn('Ungültige Mengenangabe', response.get_json()['error'])

    def test_infinite_amount_is_a_validation_error(self):
        body = '{"title": "Suppe", "instructions": "Kochen", "ingredients": [{"name": "Wasser", "amount": 1e400}]}'
        response = self.client.post('/api/recipes', data=body, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('Ungültige Mengenangabe', response.get_json()['error'])

    def test_out_of_range_servings(self):
        created = self.create_recipe()
        for raw in ['10' * 200, '1e400', '1001']:
            with self.subTest(servings=raw[:20]):
                body = '{"title": "Suppe", "instructions": "Kochen", ' \
                       '"ingredients": [{"name": "Wasser", "amount": "1"}], "servings": ' + raw + '}'
                response = self.client.post('/api/recipes', data=body, content_type='application/json')
                self.assertEqual(response.status_code, 400)

                response = self.client.post(
                    f"/api/recipes/{created['id']}/servings",
                    data='{"servings": ' + raw + '}', content_type='application/json'
                )
                self.assertEqual(response.status_code, 400)

    def test_changes_with_infinite_servings(self):
        body = '{"original": {"title": "A", "servings": 1e400}, "refined": {"title": "A", "servings": 2}}'
        response = self.client.post('/api/recipes/changes', data=body, content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['changes']['servings'])


if __name__ == '__main__':
    unittest.main()

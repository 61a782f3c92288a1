"""
Router tests
"""

from http import HTTPStatus
from unittest.mock import patch
import dataclasses
import json
import types
import unittest

from pyresty import ActionHandle, JSONValue, Router, Settings, Text
from pyresty import status_bad_request
from pyresty.__main__ import load_router
from pyresty.params import BodyDecodeError
from tests.test_web import do_req


@dataclasses.dataclass
class Data:
    Id: str = ''
    Count: int = 0


class RouterTests(unittest.TestCase):
    def test_get(self):
        def get_data(params, ctx):
            return JSONValue(Data("ID1", 1)), HTTPStatus.OK

        self.router.get('/api/data', get_data)

        res = do_req(self.router, '/api/data')
        self.assertEqual(res.get_json(), {'Id': "ID1", 'Count': 1})

    def test_post(self):
        def add_data(params, ctx):
            try:
                data = params.scan_body(Data)
            except BodyDecodeError:
                return status_bad_request()

            data.Id = "ID1"
            return JSONValue(data), HTTPStatus.CREATED

        self.router.post('/api/data', add_data)

        body = json.dumps({'Id': '', 'Count': 1}).encode('utf-8')
        res = do_req(self.router, '/api/data', body=body, method='POST')
        self.assertEqual(res.get_json('201 Created'), {'Id': "ID1", 'Count': 1})

        res = do_req(self.router, '/api/data', body=b'{', method='POST')
        res.check_msg('400 Bad Request', "Bad Request")

    def test_put(self):
        def update_data(params, ctx):
            data = params.scan_body(Data)
            data.Count += 1
            return JSONValue(data), HTTPStatus.OK

        self.router.put('/api/data', update_data)

        body = json.dumps({'Id': 'ID2', 'Count': 1}).encode('utf-8')
        res = do_req(self.router, '/api/data', body=body, method='PUT')
        self.assertEqual(res.get_json(), {'Id': "ID2", 'Count': 2})

    def test_all_methods(self):
        def echo(params, ctx):
            return Text(params.param('name')), 0

        methods = {
            'GET': self.router.get,
            'POST': self.router.post,
            'PUT': self.router.put,
            'DELETE': self.router.delete,
            'HEAD': self.router.head,
            'PATCH': self.router.patch,
            'OPTIONS': self.router.options,
        }

        for method, register in methods.items():
            self.assertIs(register(f'/{method.lower()}/:name', echo),
                self.router)

        for method in methods:
            with self.subTest(method=method):
                res = do_req(self.router, f'/{method.lower()}/{method}',
                    method=method)
                res.check_msg("200 OK", method)

                other = 'PUT' if method == 'GET' else 'GET'
                res = do_req(self.router, f'/{method.lower()}/x',
                    method=other)
                res.check_msg("405 Method Not Allowed", "Method Not Allowed")
                self.assertEqual(res.headers['Allow'], method)

    def test_chaining(self):
        router = self.router.get('/items', lambda params, ctx:
            (Text("list"), 0)).post('/items', lambda params, ctx:
            (Text("added"), HTTPStatus.CREATED))

        self.assertIs(router, self.router)
        do_req(router, '/items').check_msg("200 OK", "list")
        do_req(router, '/items', method='POST').check_msg("201 Created",
            "added")

    def test_route(self):
        self.router.route('post', '/lower', lambda params, ctx:
            (Text("lower"), 0))

        do_req(self.router, '/lower', method='POST').check_msg("200 OK",
            "lower")

        with self.assertRaisesRegex(ValueError, "Unsupported method 'CONNECT'"):
            self.router.route('CONNECT', '/', lambda params, ctx: None)

    def test_decorators(self):
        @self.router.get('/items/{ident:d}')
        def get_item(params, ctx):
            return JSONValue({'ident': params.param('ident')}), 0

        self.assertIsInstance(get_item, ActionHandle)
        self.assertTrue(get_item.name.endswith(".<locals>.get_item"))

        @self.router.validator(get_item)
        def check_item(params, ctx, errors):
            if params.param('ident') == '0':
                errors.add_error("Invalid item")

        self.assertEqual(self.router.registry.get_validators(get_item),
            (check_item,))

        res = do_req(self.router, '/items/12')
        self.assertEqual(res.get_json(), {'ident': '12'})

        res = do_req(self.router, '/items/0')
        self.assertEqual(res.get_json('400 Bad Request'), {
            'errors': ["Invalid item"],
        })

    def test_same_action_twice(self):
        def action(params, ctx):
            return Text("shared"), 0

        self.router.get('/a', action).get('/b', action)
        self.router.add_validator(action, lambda params, ctx, errors:
            errors.add_error("Rejected"))

        for path in ['/a', '/b']:
            with self.subTest(path=path):
                res = do_req(self.router, path)
                self.assertEqual(res.get_json('400 Bad Request'),
                    {'errors': ["Rejected"]})

    def test_callable_object(self):
        @dataclasses.dataclass
        class Greeter:
            greeting: str

            def __call__(self, params, ctx):
                return Text(f"{self.greeting} {params.query('name')}"), 0

        greeter = Greeter("Hello")
        self.router.get('/hello', greeter)

        @self.router.validator(greeter)
        def require_name(params, ctx, errors):
            if not params.query('name'):
                errors.add_error("name is required")

        do_req(self.router, '/hello', name='Bob').check_msg("200 OK",
            "Hello Bob")
        self.assertEqual(do_req(self.router, '/hello').get_json(
            '400 Bad Request'), {'errors': ["name is required"]})

    def test_settings(self):
        with patch('pyresty.config.os.environ',
            {'PYRESTY_MAX_BODY_SIZE': '4'}):
            router = Router()

        self.assertEqual(router.settings.max_body_size, 4)

        def action(params, ctx):
            return JSONValue(params.scan_body()), 0

        router.post('/', action)

        with self.assertLogs('pyresty.action', 'ERROR') as captured:
            res = do_req(router, '/', body=b'[1, 2]', method='POST')

        res.check_msg("500 Internal Server Error", "Internal Server Error")
        self.assertIn("Request body too large", captured.output[0])

        res = do_req(router, '/', body=b'[1]', method='POST')
        self.assertEqual(res.get_json(), [1])

    @patch('pyresty.web.routing.configure_logging')
    def test_wsgi_app(self, mock_conf):
        with self.assertRaisesRegex(AssertionError, "No routes are "
            "registered"):
            self.router.get_wsgi_app()

        self.router.get('/', lambda params, ctx: (Text("app"), 0))
        app = self.router.get_wsgi_app()
        mock_conf.assert_called_once_with()

        do_req(app, '/').check_msg("200 OK", "app")
        do_req(app, '/missing').check_msg("404 Not Found", "Not Found")

    def setUp(self):
        self.router = Router(settings=Settings())


class LoadRouterTests(unittest.TestCase):
    def test_load(self):
        router = Router(settings=Settings())
        module = types.ModuleType('fake_app')
        module.router = router
        module.other = object()

        with patch.dict('sys.modules', {'fake_app': module}):
            self.assertIs(load_router('fake_app:router'), router)

            with self.assertRaisesRegex(ValueError, "Module 'fake_app' has no "
                "attribute 'missing'"):
                load_router('fake_app:missing')

            with self.assertRaisesRegex(ValueError, "fake_app:other is not a "
                "Router"):
                load_router('fake_app:other')

    def test_invalid_target(self):
        for target in ['fake_app', 'fake_app:', ':router']:
            with self.subTest(target=target):
                with self.assertRaisesRegex(ValueError, "Invalid target"):
                    load_router(target)

import unittest

from portal_case import PortalTestCase
from resultportal.models import Account
from reset_admin import reset_admin_password


class BasicTests(PortalTestCase):

    def test_unknown_route_returns_json_404(self):
        response = self.client.get('/no-such-page')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {'error': 'Not found'})

    def test_wrong_method_returns_json_405(self):
        response = self.client.get('/api/auth/login')
        self.assertEqual(response.status_code, 405)
        self.assertIn('error', response.get_json())

    def test_protected_endpoint_requires_session(self):
        response = self.client.get('/api/admin/teachers')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error'], 'Not authenticated')


class ResetAdminTests(PortalTestCase):

    def test_reset_creates_admin_then_rotates_password(self):
        first = reset_admin_password('root@school.local')
        admin = Account.query.filter_by(email='root@school.local').one()
        self.assertEqual(admin.role, 'admin')
        self.assertTrue(admin.is_approved)
        self.login('root@school.local', first)

        second = reset_admin_password('root@school.local')
        self.assertNotEqual(first, second)
        self.assertEqual(Account.query.count(), 1)
        resp = self.app.test_client().post('/api/auth/login',
                                           json={'email': 'root@school.local', 'password': first})
        self.assertEqual(resp.status_code, 401)
        self.login('root@school.local', second, self.app.test_client())

if __name__ == "__main__":
    unittest.main()

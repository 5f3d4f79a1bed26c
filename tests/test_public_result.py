import unittest
from unittest import mock

from portal_case import PortalTestCase
from resultportal import ledger


class PublicResultTests(PortalTestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.teacher = self.make_teacher(approved_by=self.admin)
        for subject, ce, te in [('Physics', 12, 20), ('English', 25, 55)]:
            ledger.submit(self.teacher, {'name': 'Meera', 'admissionNumber': '2024-17', 'class': 'Plus Two',
                                         'subject': subject, 'ce': ce, 'te': te})

    def test_result_is_public_and_cors_open(self):
        resp = self.client.get('/api/result/2024-17')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers['Access-Control-Allow-Origin'], '*')
        self.assertEqual(resp.headers['Access-Control-Allow-Methods'], 'GET')
        data = resp.get_json()
        self.assertEqual(data['name'], 'Meera')
        self.assertEqual(data['class'], 'Plus Two')
        self.assertEqual(data['admission_number'], '2024-17')
        self.assertEqual(data['subjects'], [
            {'name': 'English', 'ce': 25, 'te': 55, 'total': 80, 'result': 'Pass'},
            {'name': 'Physics', 'ce': 12, 'te': 20, 'total': 32, 'result': 'Fail'},
        ])

    def test_unknown_admission_number(self):
        resp = self.client.get('/api/result/nobody')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json()['error'], 'Student not found')
        self.assertEqual(resp.headers['Access-Control-Allow-Origin'], '*')

    def test_preflight(self):
        resp = self.client.options('/api/result/2024-17')
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(resp.headers['Access-Control-Allow-Headers'], 'Content-Type')

    def test_server_error_still_carries_cors_headers(self):
        with mock.patch.object(ledger, 'result_for_admission_number', side_effect=RuntimeError('db down')):
            resp = self.client.get('/api/result/2024-17')
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_json(), {'error': 'Internal server error'})
        self.assertEqual(resp.headers['Access-Control-Allow-Origin'], '*')

    def test_private_endpoints_are_not_cors_open(self):
        resp = self.client.get('/api/auth/me')
        self.assertEqual(resp.status_code, 401)
        self.assertNotIn('Access-Control-Allow-Origin', resp.headers)

if __name__ == "__main__":
    unittest.main()

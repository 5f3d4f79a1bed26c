import unittest

from portal_case import PortalTestCase, TEACHER_PASSWORD
from resultportal import app, db
from resultportal import accounts
from resultportal.models import Account, Mark, PreRegisteredTeacher


class SignupTests(PortalTestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.login_admin(self.admin)
        resp = self.client.post('/api/admin/pre-registered-teachers',
                                json={'name': 'Ravi Kumar', 'registerNumber': 'TR100'})
        self.assertEqual(resp.status_code, 201)
        self.entry_id = resp.get_json()['id']
        self.teacher_client = self.app.test_client()

    def _signup(self, **overrides):
        payload = {'name': 'Ravi Kumar', 'email': 'Ravi@School.local ', 'password': 'secret-pw',
                   'registerNumber': 'TR100'}
        payload.update(overrides)
        return self.teacher_client.post('/api/auth/signup', json=payload)

    def test_signup_creates_pending_teacher_and_consumes_entry(self):
        resp = self._signup()
        self.assertEqual(resp.status_code, 201)
        user = resp.get_json()['user']
        self.assertEqual(user['email'], 'ravi@school.local')
        self.assertEqual(user['role'], 'teacher')
        self.assertFalse(user['isApproved'])
        self.assertFalse(user['canEnterMarks'])
        self.assertEqual(user['status'], 'active')
        self.assertTrue(db.session.get(PreRegisteredTeacher, self.entry_id).is_registered)

    def test_pre_registration_is_consumed_once(self):
        self.assertEqual(self._signup().status_code, 201)
        resp = self._signup(email='other@school.local')
        self.assertIn(resp.status_code, (400, 409))
        self.assertEqual(Account.query.filter_by(role='teacher').count(), 1)

    def test_signup_after_pre_registration_deleted_is_rejected(self):
        resp = self.client.delete(f'/api/admin/pre-registered-teachers/{self.entry_id}')
        self.assertEqual(resp.status_code, 200)
        resp = self._signup()
        self.assertEqual(resp.status_code, 400)
        self.assertIn('Invalid teacher details', resp.get_json()['error'])

    def test_signup_name_must_match_entry(self):
        resp = self._signup(name='Someone Else')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('Invalid teacher details', resp.get_json()['error'])

    def test_duplicate_email_is_conflict(self):
        resp = self._signup(email=self.admin.email)
        self.assertEqual(resp.status_code, 409)
        self.assertFalse(db.session.get(PreRegisteredTeacher, self.entry_id).is_registered)

    def test_missing_fields_and_short_password(self):
        self.assertEqual(self._signup(password='').status_code, 400)
        self.assertEqual(self._signup(registerNumber='').status_code, 400)
        resp = self._signup(password='abc')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('at least', resp.get_json()['error'])

    def test_duplicate_pre_registration_is_conflict(self):
        resp = self.client.post('/api/admin/pre-registered-teachers',
                                json={'name': 'Another', 'registerNumber': 'TR100'})
        self.assertEqual(resp.status_code, 409)

    def test_pre_registration_requires_fields(self):
        resp = self.client.post('/api/admin/pre-registered-teachers', json={'name': 'Nobody'})
        self.assertEqual(resp.status_code, 400)

    def test_list_pre_registrations_newest_first(self):
        self.client.post('/api/admin/pre-registered-teachers', json={'name': 'Later', 'registerNumber': 'TR101'})
        data = self.client.get('/api/admin/pre-registered-teachers').get_json()
        self.assertEqual([e['registerNumber'] for e in data], ['TR101', 'TR100'])

    def test_delete_unknown_pre_registration_is_not_found(self):
        self.assertEqual(self.client.delete('/api/admin/pre-registered-teachers/999').status_code, 404)

    def test_teacher_cannot_manage_pre_registrations(self):
        self._signup()
        self.login('ravi@school.local', 'secret-pw', self.teacher_client)
        resp = self.teacher_client.post('/api/admin/pre-registered-teachers',
                                        json={'name': 'X', 'registerNumber': 'TR200'})
        self.assertEqual(resp.status_code, 403)


class LoginTests(PortalTestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.teacher = self.make_teacher()

    def test_login_sets_cookie_and_me_reports_live_state(self):
        resp = self.client.post('/api/auth/login',
                                json={'email': 'ASHA@school.local', 'password': TEACHER_PASSWORD})
        self.assertEqual(resp.status_code, 200)
        self.assertIn(app.config['AUTH_COOKIE_NAME'] + '=', resp.headers.get('Set-Cookie', ''))
        me = self.client.get('/api/auth/me').get_json()
        self.assertEqual(me['email'], 'asha@school.local')
        self.assertFalse(me['isApproved'])
        self.assertEqual(me['refreshAfterSeconds'], app.config['ACCOUNT_REFRESH_SECONDS'])

        # Approval is visible on the next poll without logging in again
        teacher = db.session.get(Account, self.teacher.id)
        teacher.is_approved = True
        db.session.commit()
        self.assertTrue(self.client.get('/api/auth/me').get_json()['isApproved'])

    def test_login_with_register_number(self):
        resp = self.client.post('/api/auth/login', json={
            'email': 'asha@school.local', 'password': TEACHER_PASSWORD, 'registerNumber': 'tr001'})
        self.assertEqual(resp.status_code, 200)
        resp = self.client.post('/api/auth/login', json={
            'email': 'asha@school.local', 'password': TEACHER_PASSWORD, 'registerNumber': 'TR999'})
        self.assertEqual(resp.status_code, 401)

    def test_bad_password_is_unauthenticated(self):
        resp = self.client.post('/api/auth/login', json={'email': 'asha@school.local', 'password': 'nope'})
        self.assertEqual(resp.status_code, 401)
        resp = self.client.post('/api/auth/login', json={'email': 'ghost@school.local', 'password': 'nope'})
        self.assertEqual(resp.status_code, 401)

    def test_tampered_cookie_is_unauthenticated(self):
        self.client.set_cookie(app.config['AUTH_COOKIE_NAME'], 'not-a-real-token')
        resp = self.client.get('/api/auth/me')
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()['error'], 'Invalid token')

    def test_logout_clears_session(self):
        self.login_teacher(self.teacher)
        self.assertEqual(self.client.post('/api/auth/logout').status_code, 200)
        self.assertEqual(self.client.get('/api/auth/me').status_code, 401)

    def test_deleted_account_session_is_unauthenticated(self):
        self.login_teacher(self.teacher)
        admin_client = self.login_admin(self.admin, self.app.test_client())
        admin_client.post(f'/api/admin/teachers/{self.teacher.id}/reject')
        self.assertEqual(self.client.get('/api/auth/me').status_code, 401)

    def test_old_session_does_not_carry_over_to_next_account(self):
        accounts.approve(self.teacher.id, self.admin)
        self.login_teacher(self.teacher)
        old_id = self.teacher.id
        admin_client = self.login_admin(self.admin, self.app.test_client())
        self.assertEqual(admin_client.delete(f'/api/admin/teachers/{old_id}').status_code, 200)

        joel = self.make_teacher(name='Joel', email='joel@school.local', register_number='TR002',
                                 approved_by=self.admin)
        self.assertNotEqual(joel.id, old_id)
        self.assertEqual(self.client.get('/api/auth/me').status_code, 401)
        resp = self.client.post('/api/teacher/marks', json={
            'name': 'Nila Das', 'admissionNumber': 'ADM-001', 'class': 'Plus One',
            'subject': 'Math', 'ce': 18, 'te': 30})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(Mark.query.count(), 0)

    def test_session_is_bound_to_account_email(self):
        token_client = self.login_teacher(self.teacher)
        account = db.session.get(Account, self.teacher.id)
        account.email = 'someone.else@school.local'
        db.session.commit()
        resp = token_client.get('/api/auth/me')
        self.assertEqual(resp.status_code, 401)

if __name__ == "__main__":
    unittest.main()

from flask import current_app, g, jsonify, make_response, request
from resultportal import app, db
import logging
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)
from resultportal import accounts, ledger, reports
from resultportal.auth import (ADMIN, APPROVED_TEACHER, AUTHENTICATED, MARK_ENTRY, authenticate,
                               clear_auth_cookie, requires, set_auth_cookie)
from resultportal.errors import PortalError, ValidationError
from werkzeug.exceptions import HTTPException


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data

# --- Error handling ---

@app.errorhandler(PortalError)
def handle_portal_error(error):
    return jsonify(error.to_dict()), error.status_code

@app.errorhandler(404)
def handle_404(error):
    return jsonify({'error': 'Not found'}), 404

@app.errorhandler(405)
def handle_405(error):
    return jsonify({'error': 'Method not allowed'}), 405

@app.errorhandler(500)
def handle_500(error):
    logger.exception("Unhandled exception")
    db.session.rollback()
    return jsonify({'error': 'Internal server error'}), 500

@app.errorhandler(Exception)
def handle_unexpected(error):
    if isinstance(error, HTTPException):
        return jsonify({'error': error.description}), error.code
    return handle_500(error)

# --- Auth ---

@app.route('/api/auth/signup', methods=['POST'])
def signup():
    data = _json_body()
    account = accounts.signup(
        data.get('name'), data.get('email'), data.get('password'), data.get('registerNumber')
    )
    return jsonify({'user': account.to_dict()}), 201

@app.route('/api/auth/login', methods=['POST'])
def login():
    data = _json_body()
    account = authenticate(data.get('email'), data.get('password'), data.get('registerNumber'))
    logger.info("Login: %s (%s)", account.email, account.role)
    response = jsonify({'user': account.to_dict()})
    return set_auth_cookie(response, account)

@app.route('/api/auth/logout', methods=['POST'])
def logout():
    return clear_auth_cookie(jsonify({'message': 'Logged out'}))

@app.route('/api/auth/me')
@requires(AUTHENTICATED)
def me():
    data = g.account.to_dict()
    data['refreshAfterSeconds'] = current_app.config['ACCOUNT_REFRESH_SECONDS']
    return jsonify(data)

# --- Admin: pre-registration ---

@app.route('/api/admin/pre-registered-teachers', methods=['GET'])
@requires(ADMIN)
def list_pre_registered_teachers():
    return jsonify([e.to_dict() for e in accounts.list_pre_registered()])

@app.route('/api/admin/pre-registered-teachers', methods=['POST'])
@requires(ADMIN)
def pre_register_teacher():
    data = _json_body()
    entry = accounts.pre_register_teacher(data.get('name'), data.get('registerNumber'))
    return jsonify(entry.to_dict()), 201

@app.route('/api/admin/pre-registered-teachers/<int:entry_id>', methods=['DELETE'])
@requires(ADMIN)
def delete_pre_registered_teacher(entry_id):
    accounts.delete_pre_registered(entry_id)
    return jsonify({'message': 'Pre-registered teacher deleted successfully'})

# --- Admin: teacher accounts ---

@app.route('/api/admin/teachers')
@requires(ADMIN)
def list_teachers():
    return jsonify([t.to_dict() for t in accounts.list_teachers()])

@app.route('/api/admin/teacher-requests')
@requires(ADMIN)
def list_teacher_requests():
    return jsonify([t.to_dict() for t in accounts.list_teacher_requests()])

@app.route('/api/admin/teachers/<int:account_id>/approve', methods=['POST'])
@requires(ADMIN)
def approve_teacher(account_id):
    return jsonify(accounts.approve(account_id, g.account).to_dict())

@app.route('/api/admin/teachers/<int:account_id>/reject', methods=['POST'])
@requires(ADMIN)
def reject_teacher(account_id):
    accounts.reject(account_id, g.account)
    return jsonify({'message': 'Teacher request rejected successfully'})

@app.route('/api/admin/teachers/<int:account_id>/mark-entry/grant', methods=['POST'])
@requires(ADMIN)
def grant_mark_entry(account_id):
    data = _json_body()
    return jsonify(accounts.grant_mark_entry(account_id, g.account, data.get('reason')).to_dict())

@app.route('/api/admin/teachers/<int:account_id>/mark-entry/revoke', methods=['POST'])
@requires(ADMIN)
def revoke_mark_entry(account_id):
    return jsonify(accounts.revoke_mark_entry(account_id, g.account).to_dict())

@app.route('/api/admin/teachers/<int:account_id>/mark-entry/toggle', methods=['POST'])
@requires(ADMIN)
def toggle_mark_entry(account_id):
    data = _json_body()
    return jsonify(accounts.toggle_mark_entry(account_id, g.account, data.get('reason')).to_dict())

@app.route('/api/admin/teachers/<int:account_id>', methods=['PATCH'])
@requires(ADMIN)
def update_teacher_status(account_id):
    status = _json_body().get('status')
    account = accounts.set_activity(account_id, g.account, status)
    data = account.to_dict()
    data['message'] = f"Teacher account {'disabled' if status == 'inactive' else 'enabled'} successfully"
    return jsonify(data)

@app.route('/api/admin/teachers/<int:account_id>', methods=['DELETE'])
@requires(ADMIN)
def delete_teacher(account_id):
    accounts.delete_account(account_id, g.account)
    return jsonify({'message': 'Teacher deleted successfully'})

@app.route('/api/admin/dashboard')
@requires(ADMIN)
def admin_dashboard():
    limit = reports.top_limit(request.args.get('limit'))
    return jsonify(reports.admin_dashboard(limit))

# --- Teacher ---

@app.route('/api/teacher/students', methods=['GET'])
@requires(APPROVED_TEACHER)
def teacher_students():
    class_name = request.args.get('class')
    if not class_name:
        raise ValidationError('Class parameter is required')
    return jsonify([s.to_dict() for s in ledger.list_students(class_name)])

@app.route('/api/teacher/students', methods=['POST'])
@requires(APPROVED_TEACHER)
def teacher_create_student():
    data = _json_body()
    student, created = ledger.create_student(data.get('name'), data.get('admissionNumber'), data.get('class'))
    if not created:
        return jsonify({
            'message': 'Student with this admission number already exists',
            'id': student.id,
        }), 200
    return jsonify({'message': 'Student created successfully', 'id': student.id}), 201

@app.route('/api/teacher/marks', methods=['POST'])
@requires(MARK_ENTRY)
def submit_mark():
    mark = ledger.submit(g.account, _json_body())
    return jsonify(mark.to_dict()), 201

@app.route('/api/teacher/marks', methods=['GET'])
@requires(APPROVED_TEACHER)
def teacher_marks():
    return jsonify([m.to_dict() for m in ledger.list_by_teacher(g.account.id)])

@app.route('/api/teacher/marks/<int:student_id>')
@requires(APPROVED_TEACHER)
def student_marks(student_id):
    return jsonify([m.to_dict() for m in ledger.list_by_student(student_id)])

@app.route('/api/teacher/dashboard')
@requires(APPROVED_TEACHER)
def teacher_dashboard():
    limit = reports.top_limit(request.args.get('limit'))
    return jsonify(reports.teacher_dashboard(g.account.id, limit))

# --- Public ---

@app.after_request
def public_result_cors(response):
    if not request.path.startswith('/api/result/'):
        return response
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response

@app.route('/api/result/<admission_number>', methods=['GET', 'OPTIONS'])
def student_result(admission_number):
    if request.method == 'OPTIONS':
        return make_response('', 204)
    return jsonify(ledger.result_for_admission_number(admission_number))

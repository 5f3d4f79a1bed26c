from resultportal import app, db, bootstrap_admin

with app.app_context():
    db.create_all()
    admin = bootstrap_admin()
    if admin:
        print(f"Admin account: {admin.email}")

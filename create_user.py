from app import create_app
from models import ADBUser, ALL_ROLES
from modules.users.queries import add_user_role, clean_user_data, create_user as insert_user

app = create_app()


def create_user(email, name, roles):
    with app.app_context():
        # email must be unique
        existing_user = ADBUser.query.filter_by(email=email).first()
        if existing_user:
            for role in roles:
                add_user_role(existing_user.id, role)
            print(f"User '{email}' already exists; roles now: {', '.join(existing_user.role_names)}")
            return

        user_id = insert_user(clean_user_data({"email": email, "name": name, "roles": roles}))
        print(f"Created user {user_id}: {email} (roles: {', '.join(roles)})")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Create an ADB user (e.g. the first admin).')
    parser.add_argument('email', help='Google account email')
    parser.add_argument('name', help='Display name')
    parser.add_argument('roles', nargs='+', choices=ALL_ROLES, help='One or more roles')

    args = parser.parse_args()
    create_user(args.email, args.name, args.roles)

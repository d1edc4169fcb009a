from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

# Extensions are created unbound and attached in create_app()

# Database
db = SQLAlchemy()

# Session-backed user loading
login_manager = LoginManager()

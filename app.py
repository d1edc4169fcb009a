from flask import Flask, g, render_template
from dotenv import load_dotenv

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)
from logging_config import configure_logging, get_logger  # noqa: E402

logger = get_logger(__name__)


def create_app(test_config=None) -> Flask:
    """Application factory for the activist database."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app.config.get("LOG_LEVEL"))

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"

    # blueprints
    from modules.auth import bp as auth_bp
    from modules.activists import bp as activists_bp
    from modules.events import bp as events_bp
    from modules.groups import bp as groups_bp
    from modules.users import bp as users_bp
    from modules.chapters import bp as chapters_bp
    from modules.supporters import bp as supporters_bp
    from modules.discord import bp as discord_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(activists_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(groups_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(chapters_bp)
    app.register_blueprint(supporters_bp)
    app.register_blueprint(discord_bp)

    # DB
    with app.app_context():
        # models must be imported before create_all()
        import models  # noqa: F401
        from modules.sync import models as sync_models  # noqa: F401

        db.create_all()

    # --- current user in Jinja templates ---
    from permissions import get_user_main_role

    @app.context_processor
    def inject_user():
        user = g.get("adb_user")
        return dict(
            main_role=get_user_main_role(user) if user else "",
            user_name=getattr(user, "name", "") if user else "",
            user_email=getattr(user, "email", "") if user else "",
        )

    @app.errorhandler(500)
    def internal_error(err):
        db.session.rollback()
        logger.error("unhandled error", exc_info=getattr(err, "original_exception", None) or err)
        return render_template("500.html"), 500

    logger.info("app created", extra={"is_prod": app.config.get("IS_PROD")})
    return app


if __name__ == "__main__":
    from modules.sync import start_sync_jobs

    app = create_app()
    start_sync_jobs(app)
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=not app.config["IS_PROD"], use_reloader=False)

"""
Initialize database tables.
Run this on first deploy instead of flask db upgrade.

Set RESET_DB=1 environment variable to drop and recreate all tables.
"""
import importlib.util
import os

from baseline import create_app, db
from baseline.models import PitchDeckSettings

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')


def _load_migration(filename):
    path = os.path.join(MIGRATIONS_DIR, filename)
    spec = importlib.util.spec_from_file_location(filename[:-3], path)
    migration = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(migration)
    return migration


def init_db(config_name=None):
    """Create all database tables and seed the settings row."""
    app = create_app(config_name or os.getenv('FLASK_ENV', 'production'))

    with app.app_context():
        if os.getenv('RESET_DB', '').strip() in ('1', 'true', 'yes'):
            print("RESET_DB is set - dropping all tables...")
            db.drop_all()
            print("Tables dropped.")

        print("Creating database tables...")
        db.create_all()
        PitchDeckSettings.current()
        db.session.commit()
        print("Database tables created.")

        # Constraints and partial indexes are PostgreSQL only
        if db.engine.dialect.name != 'postgresql':
            print(f"Skipping SQL migrations on {db.engine.dialect.name}")
            return

        for filename in sorted(os.listdir(MIGRATIONS_DIR)):
            if not filename.endswith('.py') or filename.startswith('_'):
                continue
            print(f"Applying {filename}...")
            try:
                _load_migration(filename).upgrade()
            except Exception as e:
                db.session.rollback()
                print(f"Migration {filename} failed: {e}")
                raise
        print("Migrations complete.")


if __name__ == '__main__':
    init_db()

"""
Migration: Database-level guards for the investor portal tables

This migration adds what db.create_all() does not express:
1. CHECK constraints mirroring partner and connection validation
2. A partial unique index so only one update schedule row can be active
3. Lookup indexes for the slide deck and partner graph

Run manually after init_db.py on PostgreSQL:
    python migrations/001_portal_constraints.py
    python migrations/001_portal_constraints.py downgrade
"""

# SQL for PostgreSQL
UPGRADE_SQL = """
DO $$
BEGIN
    IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname='ck_partners_ecosystem_impact') THEN
        ALTER TABLE partners ADD CONSTRAINT ck_partners_ecosystem_impact
            CHECK (ecosystem_impact BETWEEN 1 AND 10);
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname='ck_partners_coordinates') THEN
        ALTER TABLE partners ADD CONSTRAINT ck_partners_coordinates
            CHECK ((latitude IS NULL) = (longitude IS NULL));
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname='ck_partner_connections_strength') THEN
        ALTER TABLE partner_connections ADD CONSTRAINT ck_partner_connections_strength
            CHECK (strength BETWEEN 1 AND 5);
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname='ck_partner_connections_no_self') THEN
        ALTER TABLE partner_connections ADD CONSTRAINT ck_partner_connections_no_self
            CHECK (from_partner_id <> to_partner_id);
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname='ck_pitch_deck_settings_slide_size') THEN
        ALTER TABLE pitch_deck_settings ADD CONSTRAINT ck_pitch_deck_settings_slide_size
            CHECK (slide_size IN ('small', 'medium', 'large', 'wide', 'full'));
    END IF;
END $$;

-- Only one active timeline at a time
CREATE UNIQUE INDEX IF NOT EXISTS uq_update_schedule_state_active
    ON update_schedule_state(is_active) WHERE is_active;

CREATE INDEX IF NOT EXISTS idx_pitch_deck_slides_active_order
    ON pitch_deck_slides(is_active, display_order);

CREATE INDEX IF NOT EXISTS idx_partner_connections_pair
    ON partner_connections(from_partner_id, to_partner_id);

CREATE INDEX IF NOT EXISTS idx_document_history_kind_version
    ON document_history(kind, version DESC);
"""

DOWNGRADE_SQL = """
DROP INDEX IF EXISTS idx_document_history_kind_version;
DROP INDEX IF EXISTS idx_partner_connections_pair;
DROP INDEX IF EXISTS idx_pitch_deck_slides_active_order;
DROP INDEX IF EXISTS uq_update_schedule_state_active;

ALTER TABLE pitch_deck_settings DROP CONSTRAINT IF EXISTS ck_pitch_deck_settings_slide_size;
ALTER TABLE partner_connections DROP CONSTRAINT IF EXISTS ck_partner_connections_no_self;
ALTER TABLE partner_connections DROP CONSTRAINT IF EXISTS ck_partner_connections_strength;
ALTER TABLE partners DROP CONSTRAINT IF EXISTS ck_partners_coordinates;
ALTER TABLE partners DROP CONSTRAINT IF EXISTS ck_partners_ecosystem_impact;
"""

def upgrade():
    """Run upgrade migration"""
    from baseline import db
    from sqlalchemy import text
    db.session.execute(text(UPGRADE_SQL))
    db.session.commit()

def downgrade():
    """Run downgrade migration"""
    from baseline import db
    from sqlalchemy import text
    db.session.execute(text(DOWNGRADE_SQL))
    db.session.commit()

if __name__ == "__main__":
    import os
    import sys
    sys.path.insert(0, '.')
    from baseline import create_app

    app = create_app(os.getenv('FLASK_ENV', 'production'))
    with app.app_context():
        if len(sys.argv) > 1 and sys.argv[1] == 'downgrade':
            print("Running downgrade...")
            downgrade()
            print("Downgrade complete.")
        else:
            print("Running upgrade...")
            upgrade()
            print("Upgrade complete.")

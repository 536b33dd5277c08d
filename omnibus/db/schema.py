"""Database schema DDL: table, index and view definitions for the catalog."""

from __future__ import annotations

from typing import Iterator

SCHEMA_DDL = """
-- ==========================================================================
-- Conventional frequencies
-- ==========================================================================
CREATE TABLE IF NOT EXISTS frequencies (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    frequency           REAL NOT NULL,
    transmit_frequency  REAL,
    name                TEXT NOT NULL,
    description         TEXT,
    alpha_tag           TEXT,
    mode                TEXT NOT NULL,
    tone_mode           TEXT,
    tone_freq           TEXT,
    county              TEXT,
    state               TEXT,
    agency              TEXT,
    callsign            TEXT,
    service_type        TEXT,
    tags                TEXT,
    duplex              TEXT,
    offset              REAL,
    last_verified       TEXT,
    notes               TEXT,
    source              TEXT,
    active              INTEGER DEFAULT 1,
    distance_from_kc    REAL,
    latitude            REAL,
    longitude           REAL,
    class_station_code  TEXT,
    created_at          TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at          TEXT,
    export_chirp        INTEGER DEFAULT 0,
    export_uniden       INTEGER DEFAULT 0,
    export_sdrtrunk     INTEGER DEFAULT 0,
    export_sdrplus      INTEGER DEFAULT 0,
    export_opengd77     INTEGER DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_frequencies_frequency ON frequencies(frequency);
CREATE INDEX IF NOT EXISTS idx_frequencies_mode ON frequencies(mode);
CREATE INDEX IF NOT EXISTS idx_frequencies_county ON frequencies(county);
CREATE INDEX IF NOT EXISTS idx_frequencies_state ON frequencies(state);
CREATE INDEX IF NOT EXISTS idx_frequencies_service_type ON frequencies(service_type);
CREATE INDEX IF NOT EXISTS idx_frequencies_active ON frequencies(active);

-- ==========================================================================
-- Trunked systems
-- ==========================================================================
CREATE TABLE IF NOT EXISTS trunked_systems (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    system_id       TEXT NOT NULL,
    name            TEXT NOT NULL,
    type            TEXT NOT NULL,
    system_class    TEXT,
    business_type   TEXT,
    business_owner  TEXT,
    description     TEXT,
    wacn            TEXT,
    system_protocol TEXT,
    notes           TEXT,
    active          INTEGER DEFAULT 1,
    created_at      TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at      TEXT
);

CREATE INDEX IF NOT EXISTS idx_trunked_systems_system_id ON trunked_systems(system_id);
CREATE INDEX IF NOT EXISTS idx_trunked_systems_type ON trunked_systems(type);
CREATE INDEX IF NOT EXISTS idx_trunked_systems_active ON trunked_systems(active);

-- ==========================================================================
-- Trunked sites (child of trunked_systems)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS trunked_sites (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    system_id        INTEGER NOT NULL,
    site_id          TEXT NOT NULL,
    name             TEXT NOT NULL,
    description      TEXT,
    county           TEXT,
    state            TEXT,
    latitude         REAL,
    longitude        REAL,
    range_miles      REAL,
    nac              TEXT,
    active           INTEGER DEFAULT 1,
    distance_from_kc REAL,
    created_at       TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at       TEXT,
    FOREIGN KEY (system_id) REFERENCES trunked_systems(id)
);

CREATE INDEX IF NOT EXISTS idx_trunked_sites_system_id ON trunked_sites(system_id);

-- ==========================================================================
-- Talkgroups (child of trunked_systems)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS talkgroups (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    system_id   INTEGER NOT NULL,
    decimal_id  INTEGER NOT NULL,
    hex_id      TEXT,
    alpha_tag   TEXT NOT NULL,
    description TEXT,
    mode        TEXT,
    category    TEXT,
    tag         TEXT,
    priority    INTEGER DEFAULT 0,
    active      INTEGER DEFAULT 1,
    notes       TEXT,
    created_at  TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at  TEXT,
    FOREIGN KEY (system_id) REFERENCES trunked_systems(id)
);

CREATE INDEX IF NOT EXISTS idx_talkgroups_system_id ON talkgroups(system_id);
CREATE INDEX IF NOT EXISTS idx_talkgroups_decimal_id ON talkgroups(decimal_id);
CREATE INDEX IF NOT EXISTS idx_talkgroups_active ON talkgroups(active);

-- ==========================================================================
-- Counties (matched to frequencies by name, no foreign key)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS counties (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    name             TEXT NOT NULL,
    state            TEXT NOT NULL,
    fips_code        TEXT,
    region           TEXT NOT NULL,
    distance_from_kc REAL NOT NULL,
    notes            TEXT,
    created_at       TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at       TEXT
);

CREATE INDEX IF NOT EXISTS idx_counties_name ON counties(name);
CREATE INDEX IF NOT EXISTS idx_counties_state ON counties(state);

-- ==========================================================================
-- Radios and export profiles
-- ==========================================================================
CREATE TABLE IF NOT EXISTS radios (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    name             TEXT NOT NULL,
    type             TEXT NOT NULL,
    min_frequency    REAL NOT NULL,
    max_frequency    REAL NOT NULL,
    supported_modes  TEXT NOT NULL,
    channel_capacity INTEGER,
    notes            TEXT,
    created_at       TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at       TEXT
);

CREATE TABLE IF NOT EXISTS export_profiles (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    radio_id     INTEGER NOT NULL,
    name         TEXT NOT NULL,
    description  TEXT,
    filter_query TEXT NOT NULL,
    sort_order   TEXT NOT NULL,
    created_at   TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at   TEXT,
    FOREIGN KEY (radio_id) REFERENCES radios(id)
);

CREATE INDEX IF NOT EXISTS idx_export_profiles_radio_id ON export_profiles(radio_id);

-- ==========================================================================
-- Application settings (typed key/value)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS app_settings (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    key        TEXT NOT NULL UNIQUE,
    value      TEXT NOT NULL,
    type       TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_app_settings_key ON app_settings(key);
"""

# Logical view name -> SQL view name.
VIEW_NAMES: dict[str, str] = {
    "chirp_export": "view_chirp_export",
    "uniden_export": "view_uniden_export",
    "sdrtrunk_conventional": "view_sdrtrunk_conventional",
    "opengd77_export": "view_opengd77_export",
    "kc_repeaters": "view_kc_repeaters",
    "business_trunked": "view_business_trunked",
    "business_frequencies": "view_business_frequencies",
}

# SQL view name -> SELECT body.  Predicates are export business rules.
VIEW_DEFINITIONS: dict[str, str] = {
    "view_chirp_export": """
        SELECT id, frequency, name, alpha_tag, duplex, offset,
               tone_mode, tone_freq, mode,
               'KC Frequency Omnibus' AS comment
        FROM frequencies
        WHERE export_chirp = 1 AND active = 1""",
    "view_uniden_export": """
        SELECT id, frequency, name, alpha_tag, mode, tone_mode, tone_freq,
               county, state, service_type
        FROM frequencies
        WHERE export_uniden = 1 AND active = 1""",
    "view_sdrtrunk_conventional": """
        SELECT id, frequency, name, description, mode, county, state, service_type
        FROM frequencies
        WHERE export_sdrtrunk = 1 AND active = 1""",
    "view_opengd77_export": """
        SELECT id, frequency, transmit_frequency, name, alpha_tag, mode,
               tone_mode, tone_freq
        FROM frequencies
        WHERE export_opengd77 = 1 AND active = 1
          AND (mode = 'DMR' OR mode = 'FM' OR mode = 'FMN')""",
    "view_kc_repeaters": """
        SELECT id, frequency, transmit_frequency, name, description, mode,
               tone_mode, tone_freq, county, callsign
        FROM frequencies
        WHERE distance_from_kc <= 50
          AND active = 1
          AND (duplex = '+' OR duplex = '-')
          AND transmit_frequency IS NOT NULL""",
    "view_business_trunked": """
        SELECT ts.id, ts.system_id, ts.name, ts.description,
               ts.business_type, ts.business_owner
        FROM trunked_systems ts
        WHERE ts.system_class = 'Business'
          AND ts.active = 1""",
    "view_business_frequencies": """
        SELECT id, frequency, name, description, mode, agency, service_type
        FROM frequencies
        WHERE service_type = 'Business'
          AND active = 1""",
}

TABLES = (
    "frequencies",
    "trunked_systems",
    "trunked_sites",
    "talkgroups",
    "counties",
    "radios",
    "export_profiles",
    "app_settings",
)


def iter_statements(script: str) -> Iterator[str]:
    """Yield the individual statements of a DDL script, comments stripped."""
    lines = [ln for ln in script.splitlines() if not ln.strip().startswith("--")]
    for stmt in "\n".join(lines).split(";"):
        if stmt.strip():
            yield stmt.strip()


def view_statements() -> Iterator[str]:
    """DROP + CREATE pairs for every view, in definition order."""
    for name, body in VIEW_DEFINITIONS.items():
        yield f"DROP VIEW IF EXISTS {name}"
        yield f"CREATE VIEW {name} AS {body.strip()}"

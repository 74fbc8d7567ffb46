# gazadamage/constants.py
"""
Gaza Damage Assessment Constants and Configuration
Damage status classification metadata from the UNOSAT building damage assessment
"""

# Damage status classes (ordinal, 1 = most severe)
DAMAGE_CLASSES = {
    1: {"name": "Destroyed", "color": "#E57373", "card": "Buildings Destroyed"},
    2: {"name": "Severely Damaged", "color": "#FFB74D", "card": "Severely Damaged"},
    3: {"name": "Moderately Damaged", "color": "#FFE451", "card": "Moderately Damaged"},
    4: {"name": "No Damage", "color": "#4CAF50", "card": "No Damage"},
}

# Any code above this value belongs to the "No Damage" bucket
NO_DAMAGE_THRESHOLD = 3

# Label -> color, in display order
STATUS_COLOR_MAP = {c["name"]: c["color"] for c in DAMAGE_CLASSES.values()}

# Synthetic region option that disables the governorate filter
ALL_REGIONS = "All"
DEFAULT_GOVERNORATE = "Gaza"

# Used by the UI before any data has been loaded
FALLBACK_GOVERNORATES = ["All", "Gaza", "North Gaza", "Middle Area", "Khan Younis", "Rafah"]

# Map presentation
MAP_MAX_POINTS = 8000
MAP_WARNING_THRESHOLD = 20000
PROCESSING_NOTICE_THRESHOLD = 50000
MAP_CENTER = (31.4, 34.41)
MAP_ZOOM = 11
MARKER_RADIUS_DESTROYED = 5
MARKER_RADIUS_DEFAULT = 4
MAPBOX_STYLE = "light-v10"
MAPBOX_USERNAME = "mapbox"
MAPBOX_TILE_URL = "https://api.mapbox.com/styles/v1/{username}/{style}/tiles/{{z}}/{{x}}/{{y}}?access_token={token}"

# Trend table
TREND_METRIC = "ttl_destroyed"
TREND_TABLE_HEIGHT_PX = 320

# Environment configuration
ENV_MAPBOX_TOKEN = "MAPBOX_SECRET_TOKEN"
ENV_DATA_DIR = "GAZA_DAMAGE_DATA_DIR"
ENV_EXPORT_DIR = "GAZA_DAMAGE_EXPORT_DIR"

DEFAULT_DATA_DIR = "data"
DEFAULT_EXPORT_DIR = "exports"

# Static input files, looked up in the data directory (first existing candidate wins)
DATA_FILES = {
    "buildings": ["spatial_index.parquet", "spatial_index.csv"],
    "lookups": ["ui_lookups.json"],
    "summaries": ["damage_summaries.parquet", "damage_summaries.csv"],
    "sample_geometry": ["sample_geometry.geojson", "sample_geometry.gpkg"],
}

# Canonical column names per dataset
BUILDING_COLUMNS = ["Governorate", "Municipality", "Neighborhood", "sensor_date", "dmg_status", "lat", "lon"]
SUMMARY_COLUMNS = ["Governorate", "sensor_date", "name", "value", "ttl_buildings_captured", "dmg_split"]

# Export Configuration
EXPORT_CONFIG = {
    "excel": {
        "sheet_name_summaries": "Damage_Summaries",
        "filename_prefix": "gaza_damage_summary_",
    },
    "geojson": {
        "driver": "GeoJSON",
        "filename_prefix": "sample_geometry_",
    },
}

# Column name mapping: programmatic -> user-friendly
COLUMN_NAMES = {
    'Governorate': 'Governorate',
    'Municipality': 'Municipality',
    'Neighborhood': 'Neighborhood',
    'sensor_date': 'Sensor Date',
    'dmg_status': 'Damage Status',
    'name': 'Metric',
    'value': 'No. of Buildings',
    'ttl_buildings_captured': 'Buildings Captured',
    'dmg_split': 'Destroyed (%)',
}

# Column descriptions for data dictionary
COLUMN_DESCRIPTIONS = {
    'Governorate': 'Governorate name (top-level administrative region)',
    'Municipality': 'Municipality name within the governorate',
    'Neighborhood': 'Neighborhood name within the municipality',
    'sensor_date': 'Date of the satellite image the assessment is based on',
    'dmg_status': 'Damage status code (1=Destroyed, 2=Severely, 3=Moderately, >3=No damage)',
    'name': 'Name of the pre-aggregated metric (e.g. ttl_destroyed)',
    'value': 'Number of buildings counted for the metric',
    'ttl_buildings_captured': 'Total number of buildings captured on the sensor date',
    'dmg_split': 'Share of captured buildings classified as destroyed (fraction 0-1)',
}

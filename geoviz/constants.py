"""
Constants and static data used across the geoviz application.
"""

# Column aliases, in priority order. The first alias present as a key in the
# first row of a dataset wins. Adding an alias is a data change only.
FIELD_ALIASES = {
    "latitude": ["latitude", "Latitude", "lat", "Lat", "LATITUDE", "LAT"],
    "longitude": ["longitude", "Longitude", "lon", "Lng", "Long", "LONGITUDE", "LNG", "LON"],
    "geometry": ["GeoLocation", "Geolocation", "geolocation", "GEOLOCATION", "geometry", "the_geom"],
}

# Location-name aliases, in priority order, tagged with the kind of place they hold
LOCATION_ALIASES = [
    ("city", "city"),
    ("City", "city"),
    ("CITY", "city"),
    ("county", "county"),
    ("County", "county"),
    ("COUNTY", "county"),
    ("state", "state"),
    ("State", "state"),
    ("STATE", "state"),
    ("state_name", "state"),
    ("State_Name", "state"),
    ("STATE_NAME", "state"),
]

# Every raw coordinate column name, stripped from rows after resolution
COORDINATE_ALIASES = frozenset(FIELD_ALIASES["latitude"] + FIELD_ALIASES["longitude"])

# Tokens that mark the header line of a CSV preceded by metadata lines
HEADER_TOKENS = frozenset(
    FIELD_ALIASES["latitude"]
    + FIELD_ALIASES["longitude"]
    + FIELD_ALIASES["geometry"]
    + [alias for alias, _ in LOCATION_ALIASES]
)

# Structural columns of the aggregated table, never classified as data
STATE_FIELD = "state"
COUNT_FIELD = "count"
LOC_ID_FIELD = "loc_id"
EXCLUDED_COLUMNS = frozenset(["latitude", "longitude", LOC_ID_FIELD, COUNT_FIELD, STATE_FIELD])

# Chart display band; a zero-valued bar stays visible at DISPLAY_BAND_MIN
DISPLAY_BAND_MIN = 0.5
DISPLAY_BAND_MAX = 10.0
DISPLAY_BAND_MID = 5.0

CHART_TYPES = ("bar", "pie", "doughnut", "polar", "radar")

SUPPORTED_EXTENSIONS = (".json", ".csv")

MAPBOX_GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/"

# Upper bound on rows processed per upload
MAX_ROWS = 100_000

# State abbreviations mapping
state_abbreviations = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    "DC": "District of Columbia"
}

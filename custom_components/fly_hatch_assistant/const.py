"""Constants for Fly Hatch Assistant."""

# Integration identity
DOMAIN = "fly_hatch_assistant"
DEFAULT_NAME = "Fly Hatch Assistant"

# Update interval (seconds) default used by coordinator
DEFAULT_UPDATE_INTERVAL = 15 * 60  # seconds

# Caller-side timeout around one engine run (seconds)
ENGINE_TIMEOUT = 30

DEFAULT_MAX_SUGGESTIONS = 8

# Storage keys (normalized lure profile generations)
STORE_VERSION = 1
STORE_KEY = f"{DOMAIN}_profiles"

# Packaged data files
HATCH_CALENDAR_FILE = "hatch_calendar.json"
LURE_CATALOG_FILE = "lure_catalog.json"

# ----- Config keys used by the flow and entry data -----
CONF_NAME = "name"
CONF_LOCATION = "location"
CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_AIR_TEMP_ENTITY = "air_temp_entity"
CONF_WATER_TEMP_ENTITY = "water_temp_entity"
CONF_STREAM_FLOW_ENTITY = "stream_flow_entity"
CONF_WIND_SPEED_ENTITY = "wind_speed_entity"
CONF_WEATHER_ENTITY = "weather_entity"
CONF_UPDATE_INTERVAL = "update_interval"
CONF_MAX_SUGGESTIONS = "max_suggestions"
CONF_PERSIST_PROFILES = "persist_profiles"

READING_SOURCE_KEYS = (
    CONF_AIR_TEMP_ENTITY,
    CONF_WATER_TEMP_ENTITY,
    CONF_STREAM_FLOW_ENTITY,
    CONF_WIND_SPEED_ENTITY,
    CONF_WEATHER_ENTITY,
)

# ----- Hatch calendar -----
IMPORTANCE_LEVELS = ("critical", "major", "moderate", "minor")
IMPORTANCE_RANK = {"critical": 0, "major": 1, "moderate": 2, "minor": 3}
IMPORTANCE_BONUS = {"critical": 0.25, "major": 0.15, "moderate": 0.10, "minor": 0.05}
MAX_HATCH_BONUS = max(IMPORTANCE_BONUS.values())

LIFE_STAGES = ("nymph", "emerger", "dun", "spinner")
WILDCARD_RIVER = "All"

# Fixed 28-day February; the calendar is leap-year agnostic
DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
DAYS_IN_YEAR = sum(DAYS_IN_MONTH)

PEAK_WINDOW_DAYS = 14
HEAVY_INTENSITY_DAYS = 7

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

SEASON_WATER_CONDITIONS = {
    "spring": ["moderate", "fast", "clear"],
    "summer": ["slow", "moderate", "clear", "slightly_murky"],
    "fall": ["moderate", "clear"],
    "winter": ["slow", "clear"],
}

# ----- Lure profile dimensions -----
DIM_AIR_TEMP = "air_temp_c"
DIM_WATER_TEMP = "water_temp_c"
DIM_STREAM_FLOW = "stream_flow_cfs"
DIM_WIND_SPEED = "wind_speed_mph"
NUMERIC_DIMENSIONS = (DIM_AIR_TEMP, DIM_WATER_TEMP, DIM_STREAM_FLOW, DIM_WIND_SPEED)

DIM_WEATHER = "weather"
DIM_TIME_OF_DAY = "time_of_day"
DIM_SEASON = "season"
DIM_WATER_CLARITY = "water_clarity"
CATEGORICAL_DIMENSIONS = (DIM_WEATHER, DIM_TIME_OF_DAY, DIM_SEASON, DIM_WATER_CLARITY)

# Distance outside the ideal range at which a numeric term reaches 0
FALLOFF = {
    DIM_AIR_TEMP: 10.0,  # °C
    DIM_WATER_TEMP: 12.0,  # °C
    DIM_STREAM_FLOW: 300.0,  # cfs
    DIM_WIND_SPEED: 10.0,  # mph
}

NEUTRAL_BASE_SCORE = 0.5

DIMENSION_LABELS = {
    DIM_AIR_TEMP: "Air temperature",
    DIM_WATER_TEMP: "Water temperature",
    DIM_STREAM_FLOW: "Stream flow",
    DIM_WIND_SPEED: "Wind speed",
    DIM_WEATHER: "Weather",
    DIM_TIME_OF_DAY: "Time of day",
    DIM_SEASON: "Season",
    DIM_WATER_CLARITY: "Water clarity",
}

# Categorical descriptor -> numeric band lookups used by the normalizer
STREAM_FLOW_BANDS = {
    "still": (0, 60),
    "slow": (60, 180),
    "moderate": (180, 400),
    "fast": (400, 800),
    "raging": (800, 1600),
}

WIND_SPEED_BANDS = {
    "calm": (0, 3),
    "light": (3, 8),
    "light breeze": (3, 8),
    "breezy": (8, 15),
    "moderate": (8, 18),
    "windy": (18, 25),
    "strong": (18, 30),
    "gusty": (20, 32),
}

WEATHER_SYNONYMS = {
    "rain": "rainy",
    "storm": "stormy",
    "snow": "snowy",
    "fog": "foggy",
    "drizzle": "rainy",
}

# Home Assistant weather conditions -> canonical weather descriptors
HA_CONDITION_TO_WEATHER = {
    "clear-night": "clear",
    "cloudy": "cloudy",
    "exceptional": "stormy",
    "fog": "foggy",
    "hail": "stormy",
    "lightning": "stormy",
    "lightning-rainy": "stormy",
    "partlycloudy": "partly_cloudy",
    "pouring": "rainy",
    "rainy": "rainy",
    "snowy": "snowy",
    "snowy-rainy": "snowy",
    "sunny": "sunny",
    "windy": "windy",
    "windy-variant": "windy",
}

INSECT_ORDERS = {
    "mayfly": "Ephemeroptera",
    "caddis": "Trichoptera",
    "stonefly": "Plecoptera",
    "midge": "Diptera",
    "terrestrial": "Various Terrestrial Insects",
    "ant": "Formicidae",
    "beetle": "Coleoptera",
    "grasshopper": "Orthoptera",
    "hopper": "Orthoptera",
    "cricket": "Orthoptera",
    "dragonfly": "Odonata",
    "damselfly": "Odonata",
}

FLY_TYPE_BEHAVIOR = {
    "dry": "Surface presentation; imitates adult insects riding the film.",
    "terrestrial": "Surface or just below film; imitates land-based insects that fall into the water.",
    "nymph": "Sub-surface drift; imitates immature aquatic insects.",
    "emerger": "Film-riding emergers transitioning from nymph to adult.",
    "emergers": "Film-riding emergers transitioning from nymph to adult.",
    "streamer": "Active retrieve; imitates baitfish or large swimming prey.",
    "wet": "Sub-surface swing; imitates drowned adults or emergers.",
}

PROFILE_VERSION = 1

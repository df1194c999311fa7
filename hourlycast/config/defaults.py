"""Default upstream URLs and browser settings for the Culver City deployment."""

ACCUWEATHER_HOURLY_URL = (
    "https://www.accuweather.com/en/us/culver-city/90230/hourly-weather-forecast/331292"
)
PRIMARY_URL = f"{ACCUWEATHER_HOURLY_URL}?day=1"
SECONDARY_URL = f"{ACCUWEATHER_HOURLY_URL}?day=2"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Flags for running Chromium on a small container / Raspberry Pi host
DEFAULT_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-blink-features=AutomationControlled",
)

DEFAULT_FALLBACK_EXECUTABLES: tuple[str, ...] = (
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/google-chrome",
    "/snap/bin/chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
)

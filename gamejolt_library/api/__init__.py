# Site API package
from .site_api import GameJoltSiteApi, SITE_API_BASE, OWNED_GAMES, FOLLOWED_GAMES

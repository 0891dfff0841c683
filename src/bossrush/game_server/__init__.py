"""Boss Rush game server package."""

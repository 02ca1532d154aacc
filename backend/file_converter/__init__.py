"""File conversion API: format dispatch, converter adapters, analytics and uploads."""

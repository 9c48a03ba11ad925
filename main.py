"""Main script to run the geometry to H3 converter."""

from geoconv.cli import app

if __name__ == "__main__":
    app()

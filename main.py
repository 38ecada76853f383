"""KPI funnel analytics tool - Entry point."""

from dotenv import load_dotenv

from kpi_analytics.cli import app

# Load KPI_* settings from .env before options are parsed
load_dotenv()

if __name__ == "__main__":
    app()

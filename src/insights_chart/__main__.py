"""Run the insights-chart CLI with ``python -m insights_chart``."""

from insights_chart.cli import main

if __name__ == "__main__":
    main()

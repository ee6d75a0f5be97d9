import sys

from activity_quality.pipeline import PipelineRunner


def main() -> None:
    """Run the full activity quality classification pipeline."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else "config/default.yaml"
    runner = PipelineRunner(config_path)
    result = runner.run()
    print(result.report)


if __name__ == "__main__":
    main()

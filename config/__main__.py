"""Command line interface for testing configuration loading"""
from . import load_settings, SettingsError


def main():
    """Display loaded configuration"""
    try:
        settings = load_settings()
    except SettingsError as e:
        print(e)
        raise SystemExit(1)

    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings.items():
        print(f"{key}: {value}")


if __name__ == "__main__":
    main()

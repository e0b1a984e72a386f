import argparse
import sys
from pathlib import Path

# Ensure local repo package is used even if another "ralgen" is on PYTHONPATH.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ralgen import generate_from_file, load_config

HERE = Path(__file__).resolve().parent


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the STM32F103 GPIO example.")
    parser.add_argument(
        "--description",
        default=str(HERE / "descriptions" / "stm32f103_gpio.yaml"),
        help="Path to the device description",
    )
    parser.add_argument(
        "--config",
        default=str(HERE / "descriptions" / "ralgen.yaml"),
        help="Path to the generator config",
    )
    parser.add_argument("--output", default="generated", help="Output directory")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    config = load_config(args.config)
    result = generate_from_file(args.description, args.output, config)

    print("device dir:", result.device_dir)
    print("peripherals:", ", ".join(result.peripheral_modules))
    print("instances:", ", ".join(result.instance_names))


if __name__ == "__main__":
    main()

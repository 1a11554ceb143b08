import argparse
import json

from carscout.valuation import RetentionModel


def main():
    parser = argparse.ArgumentParser(description="Print a retention-model valuation")
    parser.add_argument("make")
    parser.add_argument("model")
    parser.add_argument("year", type=int)
    parser.add_argument("mileage", type=int)
    parser.add_argument("--condition", default="good")
    args = parser.parse_args()

    estimate = RetentionModel().estimate(args.make, args.model, args.year, args.mileage, args.condition)
    print(
        json.dumps(
            {
                "estimated_value": estimate.point,
                "low_value": estimate.low,
                "high_value": estimate.high,
                "age": estimate.age,
                "anchor": estimate.anchor.value,
                "anchor_tier": estimate.anchor.tier.value,
                "condition": estimate.condition,
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()

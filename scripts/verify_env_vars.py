import re
from pathlib import Path


def find_env_vars():
    """Find all environment variable aliases declared in app settings."""
    content = Path("app/config.py").read_text(encoding="utf-8")
    return sorted(set(re.findall(r'alias="([A-Z0-9_]+)"', content)))


def find_example_vars(path: str = ".env.example"):
    example = Path(path)
    if not example.exists():
        return []
    names = []
    for line in example.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            names.append(line.split("=", 1)[0].strip())
    return sorted(set(names))


def verify_against_example():
    code_vars = set(find_env_vars())
    example_set = set(find_example_vars())
    missing_in_example = sorted(code_vars - example_set)
    unknown_in_example = sorted(example_set - code_vars)

    print("=== ENV VAR VERIFICATION ===")
    print(f"Settings declare: {len(code_vars)} vars")
    print(f".env.example has: {len(example_set)} vars")
    print("")
    if missing_in_example:
        print(f"NOT IN .env.example ({len(missing_in_example)}):")
        for v in missing_in_example:
            print(f"  - {v}")
    else:
        print("Every setting is listed in .env.example.")
    print("")
    if unknown_in_example:
        print(f"UNKNOWN TO SETTINGS ({len(unknown_in_example)}):")
        for v in unknown_in_example:
            print(f"  - {v}")
    else:
        print("No unknown vars in .env.example.")


if __name__ == "__main__":
    verify_against_example()

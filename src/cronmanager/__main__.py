# cronmanager/__main__.py
from cronmanager.main import main

if __name__ == "__main__":
    raise SystemExit(main())

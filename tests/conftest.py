import os

# Console-only WARNING logging, no log files, for every test module
os.environ.setdefault("ENVIRONMENT", "testing")

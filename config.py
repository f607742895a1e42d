import os



# Absolute path to project root
# (a stable anchor for all file paths)
basedir = os.path.abspath(os.path.dirname(__file__))

# Runtime only directory (crawled datasets, logs)
instance_dir = os.path.join(basedir, "instance")

class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")

    # Raw catalog files (CSV + xlsx) with a prerequisite text column.
    CATALOG_DIR = os.environ.get("CATALOG_DIR", os.path.join(basedir, "data_catalog"))

    # Parsed prerequisite trees, one JSON file per term.
    DATASET_DIR = os.environ.get("DATASET_DIR", os.path.join(instance_dir, "terms"))

    # Nesting guard shared by parser, normalizer, wire decoder and evaluator.
    PREREQ_MAX_DEPTH = int(os.environ.get("PREREQ_MAX_DEPTH", "10"))

    # How un-parenthesized mixed and/or is grouped: "left_to_right" | "and_first"
    PREREQ_GROUPING = os.environ.get("PREREQ_GROUPING", "left_to_right")

    # Crawl fan-out. None lets ThreadPoolExecutor pick.
    CRAWL_MAX_WORKERS = int(os.environ["CRAWL_MAX_WORKERS"]) if os.environ.get("CRAWL_MAX_WORKERS") else None

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

import os

# keep test runs from writing logs/ into the working tree
os.environ.setdefault("SPDF_DISABLE_FILE_LOGS", "1")

import os
import tempfile

# keep the default sqlite file and uploads out of the working tree
os.environ.setdefault("TAXEAZE_DATA_DIR", tempfile.mkdtemp(prefix="taxeaze-tests-"))

"""Shared constants for the Test Lab step."""

# Input environment variables
GCLOUD_USER = "GCLOUD_USER"  # optional, read from key file
GCLOUD_PROJECT = "GCLOUD_PROJECT"  # optional, read from key file
GCLOUD_BUCKET = "GCLOUD_BUCKET"
GCLOUD_OPTIONS = "GCLOUD_OPTIONS"
APP_APK = "APP_APK"
TEST_APK = "TEST_APK"  # optional, switches to instrumentation tests
GCLOUD_KEY = "GCLOUD_KEY"
HOME = "HOME"

# Output variable published through envman
GCS_RESULTS_DIR = "GCS_RESULTS_DIR"

# Decoded service-account key is written to ${HOME}/KEY_FILE_NAME
KEY_FILE_NAME = "gcloudkey.json"
KEY_FILE_MODE = 0o644

GCLOUD = "gcloud"
BITRISE = "bitrise"

DEFAULT_MATRIX_FILE = "testlab.yaml"

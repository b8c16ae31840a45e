"""Constants shared across eureka domain models."""

RENEWAL_INTERVAL_IN_SECS = 60
DURATION_IN_SECS = 120

OVERRIDDEN_STATUS = "UNKNOWN"
SECURE_PORT = "443"
COUNTRY_ID = 1
DATA_CENTER_CLASS = "com.netflix.appinfo.InstanceInfo$DefaultDataCenterInfo"
DATA_CENTER_NAME = "MyOwn"

MAX_PORT = 65535

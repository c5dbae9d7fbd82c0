"""Attribute and service name constants shared across adapters."""

from __future__ import annotations

# -- Service package names --

EFS = "efs"
MEDIA_CONVERT = "mediaconvert"
SFN = "sfn"

# -- Common attribute names --

ATTR_ARN = "arn"
ATTR_CREATION_DATE = "creation_date"
ATTR_CREATION_TIME = "creation_time"
ATTR_DESCRIPTION = "description"
ATTR_DESTINATION = "destination"
ATTR_FILE_SYSTEM_ID = "file_system_id"
ATTR_ID = "id"
ATTR_KMS_KEY_ID = "kms_key_id"
ATTR_NAME = "name"
ATTR_REGION = "region"
ATTR_STATUS = "status"
ATTR_TAGS = "tags"
ATTR_TYPE = "type"

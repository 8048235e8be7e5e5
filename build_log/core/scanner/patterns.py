"""
正则表达式模式和常量

构建产物文件名格式：{device}-{buildnum}.{date}.{time}.{ext}
例如：gpn600_001-AAL-AA-07009-01.20260130.062740.zip

device 是第一个 "-" 之前的部分，buildnum 是第一个 "-" 与日期之间的全部内容。
"""

import re

FILENAME_PATTERN = re.compile(
    r'^(?P<device>[^-]+)-(?P<build_number>.+?)\.(?P<date>\d{8})\.(?P<time>\d+)\.(?P<ext>zip|json)$',
    re.IGNORECASE,
)

# 视为构建产物的扩展名
ARTIFACT_EXTENSIONS: tuple[str, ...] = (".zip", ".json")

# 文件大小单位（二进制）
SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]

# 文件名中的日期格式
FILENAME_DATE_FORMAT = "%Y%m%d"

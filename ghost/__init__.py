"""Ghost - Destiny manifest and content access backend"""

BUILD_VERSION = '20261019_1200'

import os

MAX_UPLOAD_SIZE = int(os.getenv('MAX_UPLOAD_SIZE', 10 * 1024 * 1024))

# Labelary-compatible rendering service used for mock-mode previews
LABELARY_URL = os.getenv('LABELARY_URL', 'https://api.labelary.com/v1').rstrip('/')
LABELARY_TIMEOUT = float(os.getenv('LABELARY_TIMEOUT', 10))

DEFAULT_MOCK_ITEMS = int(os.getenv('DEFAULT_MOCK_ITEMS', 3))
IMAGE_MAX_WIDTH = int(os.getenv('IMAGE_MAX_WIDTH', 800))
IMAGE_MAX_HEIGHT = int(os.getenv('IMAGE_MAX_HEIGHT', 800))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv('CORS_ORIGINS', 'http://localhost:5173,http://localhost:3000,http://localhost:8000').split(',')
    if origin.strip()
]

PORT = int(os.getenv('PORT', 8000))

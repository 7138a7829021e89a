from .settings import *

DEBUG = False

# Postgres (POSTGRES_DB set) exercises real row locks; SQLite otherwise
if not os.getenv("POSTGRES_DB"):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

TIME_ZONE = 'Africa/Lagos'

LOGGING['root']['level'] = 'WARNING'

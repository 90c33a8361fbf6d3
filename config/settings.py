from pathlib import Path
import os
from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent


# === env ===
load_dotenv(BASE_DIR / ".env")
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
DEBUG = os.getenv("DEBUG", "True") == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")


# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'users',
    'events.apps.EventsConfig',  # apps.py wires the availability signals
    'tickets',
    'panels',
    'payments',
    'pages',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'


# Database
# https://docs.djangoproject.com/en/5.2/ref/settings/#databases
# One connection configuration for the whole process; Django keeps the
# connections per worker thread and hands them to every view.

DATABASES = {
    'default': {
        'ENGINE': os.getenv('DATABASE_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.getenv('DATABASE_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv('DATABASE_USER', ''),
        'PASSWORD': os.getenv('DATABASE_PASSWORD', ''),
        'HOST': os.getenv('DATABASE_HOST', ''),
        'PORT': os.getenv('DATABASE_PORT', ''),
        'CONN_MAX_AGE': int(os.getenv('DATABASE_CONN_MAX_AGE', '60')),
    }
}


# Password validation
# https://docs.djangoproject.com/en/5.2/ref/settings/#auth-password-validators

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]


# Internationalization
# https://docs.djangoproject.com/en/5.2/topics/i18n/

MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'Africa/Lagos'
USE_I18N = True
USE_TZ = True

# --- Site data for e-mails and redirects ---
SITE_NAME = os.getenv('SITE_NAME', 'TicketWave')
SITE_URL = os.getenv('SITE_URL', 'http://localhost:8000')

# --- Email backend ---
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.smtp.EmailBackend')

# SMTP relay (Brevo by default); SSL on 465, TLS on 587
EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp-relay.brevo.com')
EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
EMAIL_USE_SSL = os.getenv('EMAIL_USE_SSL', 'false').lower() == 'true'
EMAIL_USE_TLS = os.getenv('EMAIL_USE_TLS', 'true').lower() == 'true'

DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', EMAIL_HOST_USER or 'noreply@localhost')
SERVER_EMAIL = os.getenv('SERVER_EMAIL', DEFAULT_FROM_EMAIL)

# who gets the "new panel registration" copy and the contact form
ADMIN_NOTIFY_EMAILS = [e.strip() for e in os.getenv('ADMIN_NOTIFY_EMAILS', '').split(',') if e.strip()]
CONTACTS_NOTIFY_EMAILS = [e.strip() for e in os.getenv('CONTACTS_NOTIFY_EMAILS', '').split(',') if e.strip()]

# --- Payments ---
PAYMENT_CURRENCY = os.getenv('PAYMENT_CURRENCY', 'NGN')
PAYMENT_HTTP_TIMEOUT = int(os.getenv('PAYMENT_HTTP_TIMEOUT', '20'))
# accepted absolute difference between provider and local amount, major units
PAYMENT_AMOUNT_TOLERANCE = os.getenv('PAYMENT_AMOUNT_TOLERANCE', '1')

PAYSTACK_SECRET_KEY = os.getenv('PAYSTACK_SECRET_KEY', '')
PAYSTACK_BASE_URL = os.getenv('PAYSTACK_BASE_URL', 'https://api.paystack.co')

ETEGRAM_SECRET_KEY = os.getenv('ETEGRAM_SECRET_KEY', '')
ETEGRAM_PROJECT_ID = os.getenv('ETEGRAM_PROJECT_ID', '')
ETEGRAM_CHECKOUT_BASE_URL = os.getenv('ETEGRAM_CHECKOUT_BASE_URL', 'https://api-checkout.etegram.com')
ETEGRAM_LEGACY_BASE_URL = os.getenv('ETEGRAM_LEGACY_BASE_URL', 'https://api.etegram.com')

# --- Panels ---
PANEL_SETUP_FEE = int(os.getenv('PANEL_SETUP_FEE', '15000'))
PANEL_MONTHLY_FEE = int(os.getenv('PANEL_MONTHLY_FEE', '5000'))
PANEL_ANNUAL_FEE = int(os.getenv('PANEL_ANNUAL_FEE', '60000'))
PANEL_BASE_DOMAIN = os.getenv('PANEL_BASE_DOMAIN', 'instantotp.com')
DNS_LOOKUP_TIMEOUT = float(os.getenv('DNS_LOOKUP_TIMEOUT', '5'))

# --- Logging ---
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'}},
    'loggers': {
        'mail': {'handlers': ['console'], 'level': 'INFO'},
        'payments': {'handlers': ['console'], 'level': os.getenv('PAYMENTS_LOG_LEVEL', 'INFO')},
    },
}


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/5.2/howto/static-files/

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
# Default primary key field type
# https://docs.djangoproject.com/en/5.2/ref/settings/#default-auto-field

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# custom user
AUTH_USER_MODEL = 'users.User'

LOGIN_URL = 'users:login'

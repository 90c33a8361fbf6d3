import logging

from django.conf import settings
from django.core.mail import EmailMessage
from django.http import JsonResponse
from django.template.loader import render_to_string
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from config.utils import read_json
from .forms import ContactForm

logger = logging.getLogger('mail')


def _notify(obj):
    notify_to = settings.CONTACTS_NOTIFY_EMAILS
    if not notify_to:
        # fall back to DEFAULT_FROM_EMAIL when set
        notify_to = [settings.DEFAULT_FROM_EMAIL] if settings.DEFAULT_FROM_EMAIL else []
    if not notify_to:
        return

    try:
        ctx = {'m': obj, 'site_name': settings.SITE_NAME, 'site_url': settings.SITE_URL}
        body = render_to_string('pages/contact_email.txt', ctx)
        email = EmailMessage(f"[Contact] {obj.subject}", body, settings.DEFAULT_FROM_EMAIL, notify_to,
                             reply_to=[obj.email])
        email.send(fail_silently=False)
        logger.info("Contact notify email sent: message=%s", obj.pk)
    except Exception as e:
        logger.exception("Contact notify email failed: message=%s: %s", obj.pk, e)


@csrf_exempt
@require_POST
def contact(request):
    data = read_json(request)
    if data is None:
        return JsonResponse({"error": "Invalid JSON body"}, status=400)

    form = ContactForm(data)
    if not form.is_valid():
        return JsonResponse({"error": "Invalid contact data", "fields": form.errors}, status=400)

    obj = form.save(commit=False)
    if request.user.is_authenticated:
        obj.user = request.user
    obj.save()

    # the message is stored even when the notification cannot be sent
    _notify(obj)
    return JsonResponse({"success": True, "message": "Thank you! Your message has been sent."}, status=201)

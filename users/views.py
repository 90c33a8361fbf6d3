# users/views.py
from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from config.utils import read_json
from .forms import UserRegisterForm, UserUpdateForm


def _user_payload(user):
    return {
        "id": user.id,
        "email": user.email,
        "name": user.display_name,
        "phone": user.phone,
    }


@csrf_exempt
@require_POST
def register(request):
    """Registers a user and logs them in."""
    data = read_json(request)
    if data is None:
        return JsonResponse({"error": "Invalid JSON body"}, status=400)

    form = UserRegisterForm(data)
    if not form.is_valid():
        return JsonResponse({"error": "Invalid registration data", "fields": form.errors}, status=400)

    user = form.save()
    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    return JsonResponse({"user": _user_payload(user)}, status=201)


@csrf_exempt
@require_POST
def login_view(request):
    data = read_json(request)
    if data is None:
        return JsonResponse({"error": "Invalid JSON body"}, status=400)

    email = (data.get("email") or "").lower().strip()
    user = authenticate(request, username=email, password=data.get("password") or "")
    if user is None:
        return JsonResponse({"error": "Invalid credentials"}, status=401)
    login(request, user)
    return JsonResponse({"user": _user_payload(user)})


@csrf_exempt
@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({"success": True})


@login_required
@require_http_methods(["GET", "PATCH"])
def profile(request):
    if request.method == "PATCH":
        data = read_json(request)
        if data is None:
            return JsonResponse({"error": "Invalid JSON body"}, status=400)
        # partial update: keep whatever the client did not send
        form = UserUpdateForm({"phone": request.user.phone, **data}, instance=request.user)
        if not form.is_valid():
            return JsonResponse({"error": "Invalid profile data", "fields": form.errors}, status=400)
        form.save()

    panels = [
        {"id": p.id, "name": p.name, "subdomain": p.subdomain, "paymentStatus": p.payment_status}
        for p in request.user.panels.order_by('-created_at')
    ]
    return JsonResponse({"user": _user_payload(request.user), "panels": panels})

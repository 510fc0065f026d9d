"""FastAPI app for queuing link audits and serving their reports."""

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware
from authlib.integrations.starlette_client import OAuth

from .config import settings
from .queue import enqueue_audit
from .schemas import AuditRequest
from .storage import init_db, create_audit, get_audit, list_audits


app = FastAPI(title='Site Link Auditor')
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)

oauth = OAuth()
oauth.register(
    name='google',
    client_id=settings.google_client_id,
    client_secret=settings.google_client_secret,
    server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
    client_kwargs={'scope': 'openid email profile'}
)


def get_current_user(request: Request) -> dict:
    """Get the authenticated user from session."""
    user = request.session.get('user')
    if not user:
        raise HTTPException(status_code=401, detail='Not authenticated')
    return user


def _require_audit(audit_id: str) -> dict:
    audit = get_audit(audit_id)
    if not audit:
        raise HTTPException(status_code=404, detail='Audit not found')
    return audit


@app.on_event('startup')
def on_startup() -> None:
    """Initialize DB on startup."""
    init_db()


@app.get('/health')
def health() -> dict:
    """Health check."""
    return {'status': 'ok'}


@app.get('/auth/login')
async def auth_login(request: Request):
    """Start Google OAuth flow."""
    if not settings.google_redirect_uri:
        raise HTTPException(status_code=500, detail='Missing redirect URI')
    return await oauth.google.authorize_redirect(request, settings.google_redirect_uri)


@app.get('/auth/callback')
async def auth_callback(request: Request):
    """Handle Google OAuth callback."""
    token = await oauth.google.authorize_access_token(request)
    userinfo = token.get('userinfo')
    if not userinfo:
        raise HTTPException(status_code=401, detail='No user info from Google')
    email = userinfo.get('email', '')
    domain = email.split('@')[-1].lower() if '@' in email else ''
    if settings.allowed_google_domain and domain != settings.allowed_google_domain.lower():
        raise HTTPException(status_code=403, detail='Unauthorized domain')
    request.session['user'] = {
        'email': email,
        'name': userinfo.get('name', '')
    }
    return RedirectResponse('/')


@app.get('/auth/logout')
def auth_logout(request: Request):
    """Clear session."""
    request.session.clear()
    return RedirectResponse('/')


@app.get('/api/me')
def api_me(request: Request):
    """Current user info."""
    return request.session.get('user') or {}


@app.post('/api/audits')
def create_audit_job(payload: AuditRequest, request: Request):
    """Create an audit job."""
    get_current_user(request)
    audit_id = create_audit(payload.target_urls, payload.config.model_dump())
    enqueue_audit(audit_id, payload.model_dump())
    return {'id': audit_id, 'status': 'queued'}


@app.get('/api/audits')
def audits_list(request: Request):
    """List recent audits."""
    get_current_user(request)
    return list_audits()


@app.get('/api/audits/{audit_id}')
def audit_detail(audit_id: str, request: Request):
    """Get audit status and metadata."""
    get_current_user(request)
    return _require_audit(audit_id)


@app.get('/api/audits/{audit_id}/report')
def audit_report(audit_id: str, request: Request):
    """Get text report."""
    get_current_user(request)
    audit = _require_audit(audit_id)
    if not audit.get('report_text_path'):
        raise HTTPException(status_code=404, detail='Report not found')
    return FileResponse(audit['report_text_path'], media_type='text/plain')


@app.get('/api/audits/{audit_id}/report.json')
def audit_report_json(audit_id: str, request: Request):
    """Get JSON report."""
    get_current_user(request)
    audit = _require_audit(audit_id)
    if not audit.get('report_json_path'):
        raise HTTPException(status_code=404, detail='Report not found')
    return FileResponse(audit['report_json_path'], media_type='application/json')


def launch(port: int = 8080) -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host='127.0.0.1', port=port)

# celery -A ridepay.celery_worker.celery worker --beat
from ridepay import create_app
from ridepay.tasks import make_celery

app = create_app()
celery = make_celery(app)

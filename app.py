from ridepay import create_app

app = create_app()

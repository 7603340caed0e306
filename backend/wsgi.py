from fashionhub import create_app

app = create_app()

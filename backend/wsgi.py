from supplychain import create_app

app = create_app()

from tokenstore.cli.main import app

app(prog_name="tokenstore")

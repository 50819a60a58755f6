from docstore.main import run

run()

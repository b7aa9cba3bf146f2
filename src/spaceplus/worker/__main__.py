from spaceplus.worker.main import run

run()

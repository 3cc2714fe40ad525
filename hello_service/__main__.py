# hello_service/__main__.py

from hello_service.main import main

main()

"""Run the gateway: python -m src.gateway"""

from src.gateway.supervisor import main

if __name__ == "__main__":
    main()

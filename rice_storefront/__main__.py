"""Allow running as: python -m rice_storefront"""

from rice_storefront.main import main

if __name__ == "__main__":
    main()

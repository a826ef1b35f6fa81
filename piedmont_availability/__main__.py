from piedmont_availability.cli import main

if __name__ == "__main__":
    main()

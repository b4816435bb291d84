from gift_redemption.main import main

main()

from caesar_cipher import main

main()

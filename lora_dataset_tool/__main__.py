from lora_dataset_tool import main

main()

# hornschunck_flow/user_config.py

# ==============================================================================
# 用戶常用配置 (User Configuration)
# 您可以在此處快速調整光流計算的關鍵參數
# ==============================================================================

# --- 輸入/輸出影像 ---
input_image_1 = 'img1.pgm'
input_image_2 = 'img2.pgm'
magnitude_image = 'mag.pgm'
direction_image = 'direction.ppm'

# --- 輸入來源 ---
# 'image_files' 讀取上面的兩張影像；'smooth_texture' 與 'moving_block' 為合成測試輸入
input_source = 'image_files'

# --- Horn–Schunck 參數 ---
# alpha 越大，平滑項相對資料項的權重越大；必須 > 0
alpha = 100.0
# 固定的 Jacobi 迭代次數（沒有基於收斂的提前結束）
iterations = 160

# --- 並行設定 ---
# 每個並行任務處理的行數（行帶高度），>= 1
rows_per_unit = 1
# 執行緒池大小；0 表示使用 ThreadPoolExecutor 的預設值
max_workers = 0
# 'numba' (nogil 編譯核心) 或 'numpy' (向量化切片)
backend = 'numba'

class Translator:
    def __init__(self) -> None:
        self.language = "en"
        self.translations = {
            "en": {},
            "vi": {
                "Dashboard": "Trang chủ",
                "Workout": "Tập luyện",
                "Add Exercise": "Thêm bài tập",
                "History": "Nhật ký tập luyện",
                "Reports": "Báo cáo",
                "Start Workout": "Bắt đầu tập luyện",
                "Next Exercise": "Bài tập tiếp theo",
                "Finish": "Hoàn thành",
                "Save Result": "Lưu kết quả",
                "Muscle Group": "Vùng cơ",
                "Sets": "Số sets",
                "Exercise Name": "Tên bài tập",
                "Instructions": "Hướng dẫn chi tiết",
                "Reps": "Số reps",
                "Calories": "Calories",
                "Duration (min)": "Thời gian (phút)",
                "Workout Name": "Tên buổi tập",
                "Save as template": "Lưu vào nhật ký",
                "Do Again": "Tập lại",
                "Delete": "Xóa",
                "Total Calories": "Tổng Calories",
                "Total Duration": "Tổng thời gian",
                "Total Sessions": "Tổng buổi tập",
                "Calories per Day": "Calories đốt theo ngày",
                "Duration per Day": "Thời gian tập theo ngày",
                "Muscle Group Distribution": "Phân bổ vùng cơ tập",
                "day": "Ngày",
                "week": "Tuần",
                "month": "Tháng",
                "year": "Năm",
                "Exercise name is required": "Tên bài tập là bắt buộc",
                "Muscle group is required": "Vùng cơ là bắt buộc",
                "Instructions are required": "Hướng dẫn là bắt buộc",
                "Exercise added": "Đã thêm bài tập thành công!",
                "No saved workouts yet": "Chưa có buổi tập nào được lưu",
                "Workout saved": "Đã lưu buổi tập",
            },
        }

    def set_language(self, lang: str) -> None:
        self.language = lang

    def gettext(self, key: str) -> str:
        return self.translations.get(self.language, {}).get(key, key)

translator = Translator()

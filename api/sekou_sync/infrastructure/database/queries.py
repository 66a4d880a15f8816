"""
Sentencias SQL (T-SQL) de la base de origen SekouSiji.

Todas usan parámetros enlazados (:nombre). Los rangos de fechas se calculan
en Python; solo el heartbeat usa GETDATE(), porque S_ReplicaDay se escribe
con el reloj del servidor.
"""

REPLICATION_HEARTBEAT = """
    SELECT COUNT(*) AS cnt
      FROM SekouSiji.dbo.S_ReplicaDay AS S
     WHERE S.reccnt > 0
       AND S.ReplicaDay >= DATEADD(minute, -:window_minutes, GETDATE())
"""

# Campos derivados (サイズ/面積/畳数) agregados sobre las caras MEN_CD 1..6 del medio.
# サイズ omite las caras con el mismo tamaño que la cara 1.
PROJECT_SELECT = """
    SELECT
      K.KIKAKU_NO                AS project_no,
      SR.KIKAKU_SEKO_RECORD_NO   AS round_no,
      SI.SELECT_ITEM_NM          AS category,
      BA.BAITAI_CD               AS media_name,
      K.DESIGN_NAIYO             AS content,
      SI2.SELECT_ITEM_NM         AS media_type,
      K.EIGYO_TANTO_CD           AS sales_code,
      ES.SYAIN_NM                AS sales_name,
      K.TODOHUKEN_CD             AS prefecture_code,
      TD.TODOHUKEN_NM            AS prefecture,
      K.SIKUGUN                  AS city,
      K.SETTI_BASYO              AS location,
      K.BAITAI_ZAHYO             AS coordinates,
      K.BAITAI_KOSEI             AS media_structure,
      FACES.size_label           AS size_label,
      FACES.area                 AS area,
      FACES.tatami               AS tatami,
      KA.KANBAN_BANSHITA         AS board_bottom,
      KA.KANBAN_BANSHITA + KA.KANBAN_SIZE_HEIGHT AS ground_level,
      ISNULL(SI3.SELECT_ITEM_NM, '') AS pillar_diameter,
      ISNULL(SR.HASHIRA_HONSU, 0)    AS pillar_count,
      KS.SEKOU_YOTEI_YMD         AS scheduled_date,
      KS.CHAKOU_YOTEI_YMD        AS start_planned_date,
      SR.SEKO_RECORD_YMD         AS work_date,
      KS.SEKOU_KANRYO_YMD        AS completion_date,
      SR.SEKO_INFO               AS instructions
    FROM SekouSiji.dbo.TKIKAKU AS K
      LEFT JOIN SekouSiji.dbo.TKIKAKUKANBAN AS KA
        ON KA.KIKAKU_NO = K.KIKAKU_NO AND KA.KIKAKU_KANBAN_NO = 1
      LEFT JOIN SekouSiji.dbo.MBAITAI AS BA ON BA.BAITAI_CD = K.BAITAI_CD
      LEFT JOIN SekouSiji.dbo.TKIKAKUSEKOU AS KS ON KS.KIKAKU_NO = K.KIKAKU_NO
      LEFT JOIN SekouSiji.dbo.M0002_SELECT_ITEM AS SI
        ON SI.SELECT_ITEM_CD = K.KIKAKU_KBN AND SI.SI_PARENT_CD = 42
      LEFT JOIN SekouSiji.dbo.M0002_SELECT_ITEM AS SI2
        ON SI2.SELECT_ITEM_CD = BA.BAITAI_SYUBETU_KBN AND SI2.SI_PARENT_CD = 43
      LEFT JOIN SekouSiji.dbo.M0007_TODOHUKEN AS TD ON TD.TODOHUKEN_CD = K.TODOHUKEN_CD
      LEFT JOIN SekouSiji.dbo.MSYAIN AS ES ON ES.SYAIN_CD = K.EIGYO_TANTO_CD
      LEFT JOIN SekouSiji.dbo.TKIKAKUSEKORECORD AS SR ON SR.KIKAKU_NO = K.KIKAKU_NO
      LEFT JOIN SekouSiji.dbo.M0002_SELECT_ITEM AS SI3
        ON SI3.SELECT_ITEM_CD = SR.HASHIRA_SIZE AND SI3.SI_PARENT_CD = 61
      OUTER APPLY (
        SELECT
          STRING_AGG(
            CASE
              WHEN BM.MEN_CD <> 1
               AND BM.KEIYAKU_SIZE_HEIGHT = F1.KEIYAKU_SIZE_HEIGHT
               AND BM.KEIYAKU_SIZE_WIDTH = F1.KEIYAKU_SIZE_WIDTH
              THEN NULL
              ELSE FORMAT(BM.KEIYAKU_SIZE_HEIGHT, '0') + 'x' + FORMAT(BM.KEIYAKU_SIZE_WIDTH, '0')
            END, ' ')
            WITHIN GROUP (ORDER BY BM.MEN_CD) AS size_label,
          ROUND(SUM(ISNULL(BM.KEIYAKU_SIZE_HEIGHT, 0) / 1000.0 * ISNULL(BM.KEIYAKU_SIZE_WIDTH, 0) / 1000.0), 2) AS area,
          ROUND(SUM(ISNULL(BM.KEIYAKU_SIZE_HEIGHT, 0) / 1000.0 * ISNULL(BM.KEIYAKU_SIZE_WIDTH, 0) / 1000.0 / 1.62), 2) AS tatami
        FROM SekouSiji.dbo.MBAITAIMEN AS BM
          LEFT JOIN SekouSiji.dbo.MBAITAIMEN AS F1
            ON F1.BAITAI_CD = BM.BAITAI_CD AND F1.MEN_CD = 1
        WHERE BM.BAITAI_CD = BA.BAITAI_CD AND BM.MEN_CD BETWEEN 1 AND 6
      ) AS FACES
    WHERE
      K.KIKAKU_NO < :sentinel
      AND KS.SEKOU_YOTEI_YMD IS NOT NULL
      AND SR.KIKAKU_SEKO_RECORD_NO IS NOT NULL
"""

SCOPE_TODAY = PROJECT_SELECT + """
      AND CAST(KS.SEKOU_YOTEI_YMD AS date) = :today
    ORDER BY K.KIKAKU_NO DESC
"""

SCOPE_SINGLE = PROJECT_SELECT + """
      AND K.KIKAKU_NO = :project_no
      AND SR.KIKAKU_SEKO_RECORD_NO = :round_no
"""

SCOPE_RANGE = PROJECT_SELECT + """
      AND K.UPD_DATE >= :range_start
      AND K.UPD_DATE < :range_end
    ORDER BY K.KIKAKU_NO DESC
"""

CREW_ASSIGNMENTS = """
    SELECT
      SRM.SEKO_MEMBER_CD AS employee_code,
      SS.SYAIN_NM        AS employee_name,
      SRM.LEADER_FLG     AS leader_flag
    FROM SekouSiji.dbo.TKIKAKUSEKORECORDMEMBER AS SRM
      LEFT JOIN SekouSiji.dbo.TKIKAKUSEKORECORD AS SR
        ON SR.KIKAKU_NO = SRM.KIKAKU_NO
       AND SR.KIKAKU_SEKO_RECORD_NO = SRM.KIKAKU_SEKO_RECORD_NO
      LEFT JOIN SekouSiji.dbo.MSYAIN AS SS ON SS.SYAIN_CD = SRM.SEKO_MEMBER_CD
    WHERE SRM.KIKAKU_NO = :project_no
      AND SR.KIKAKU_SEKO_RECORD_NO = :round_no
"""
